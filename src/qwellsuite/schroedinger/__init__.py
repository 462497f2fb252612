"""schroedinger sub-package: matching residuals, root finding and eigenstate solvers."""

from . import boundary
from . import donor
from . import finitewell
from . import infinitewire
from . import rootfinder
from . import shooting

__all__ = [
    "boundary",
    "donor",
    "finitewell",
    "infinitewire",
    "rootfinder",
    "shooting",
]
