"""libqwellsuite sub-package for numerical kernels and shared utilities."""

# Import modules themselves (allows: from qwellsuite.libqwellsuite import mathhelpers)
from . import constants
from . import errors
from . import fileio
from . import logger
from . import materials
from . import mathhelpers

__all__ = [
    "constants",
    "errors",
    "fileio",
    "logger",
    "materials",
    "mathhelpers",
]
