"""core sub-package: eigenstates, subbands, layer stacks and parameter files."""

from . import heterostructure
from . import params
from . import state
from . import subband

__all__ = [
    "heterostructure",
    "params",
    "state",
    "subband",
]
