"""scattering sub-package: scattering rates between subbands."""

from . import alloydisorder

__all__ = [
    "alloydisorder",
]
