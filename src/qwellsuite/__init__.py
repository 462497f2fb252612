"""
qwellsuite: eigenstate solvers for semiconductor quantum wells and wires.

This package provides shooting-method and analytic solvers for confined
electron states in heterostructures, together with the subband statistics
used by scattering-rate calculations.
"""

from . import core
from . import libqwellsuite
from . import scattering
from . import schroedinger

__all__ = [
    "core",
    "libqwellsuite",
    "scattering",
    "schroedinger",
]
