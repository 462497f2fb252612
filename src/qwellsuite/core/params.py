"""
Finite-well parameter files.

Parameters are stored one per line; anything after the first token on a
line is treated as a comment, so files can be annotated::

    100       # well width [A]
    200       # barrier width [A]
    100       # barrier potential [meV]
    0.067     # well mass [m0]
    0.067     # barrier mass [m0]
    1000      # number of spatial points
    1         # number of states
    continuous-flux   # boundary condition
    -1        # cut-off energy [meV], zero or negative for none
"""

from dataclasses import dataclass
from typing import Optional

from ..libqwellsuite.errors import ValidationError
from ..libqwellsuite.logger import get_logger

log = get_logger(__name__)

BOUNDARY_CONDITIONS = ("equal-mass", "continuous-derivative", "continuous-flux")


def GetFileToken(file_handle) -> str:
    """
    Read the first whitespace-separated token from the next line.

    Raises
    ------
    ValidationError
        At end of file or on an empty line
    """
    line = file_handle.readline()
    if not line:
        raise ValidationError("Unexpected end of file while reading parameter")
    parts = line.split()
    if not parts:
        raise ValidationError(f"Empty line in parameter file: {line!r}")
    return parts[0]


def GetFileParam(file_handle) -> float:
    """
    Read a numeric parameter from the next line of a file handle.

    Comments after the value are ignored.
    """
    token = GetFileToken(file_handle)
    try:
        return float(token)
    except ValueError as exc:
        raise ValidationError(f"Could not parse parameter value from token: {token}") from exc


@dataclass
class WellParams:
    """
    Parameters of a single finite quantum well.

    Attributes
    ----------
    well_width : float
        Width of the well [angstrom]
    barrier_width : float
        Width of each barrier [angstrom]; only used for output sampling
    potential : float
        Barrier potential [meV]
    well_mass : float
        Effective mass in the well (relative to free electron)
    barrier_mass : float
        Effective mass in the barrier (relative to free electron)
    nz : int
        Number of spatial points for wavefunction output
    nst : int
        Number of states to find
    boundary_condition : str
        One of ``BOUNDARY_CONDITIONS``
    E_cutoff : float or None
        Cut-off energy for solutions [meV]; None or a non-positive value
        means no cut-off
    """
    well_width: float = 100.0
    barrier_width: float = 200.0
    potential: float = 100.0
    well_mass: float = 0.067
    barrier_mass: float = 0.067
    nz: int = 1000
    nst: int = 1
    boundary_condition: str = "continuous-flux"
    E_cutoff: Optional[float] = None

    def __post_init__(self):
        if self.boundary_condition not in BOUNDARY_CONDITIONS:
            raise ValidationError(
                f"Unknown boundary condition '{self.boundary_condition}'; "
                f"expected one of {', '.join(BOUNDARY_CONDITIONS)}"
            )
        if self.well_width < 0.0 or self.barrier_width < 0.0:
            raise ValidationError("Well and barrier widths must be non-negative")
        if self.well_mass <= 0.0 or self.barrier_mass <= 0.0:
            raise ValidationError("Effective masses must be positive")
        if self.nz < 3:
            raise ValidationError(f"Need at least 3 spatial points; got {self.nz}")
        if self.E_cutoff is not None and self.E_cutoff <= 0.0:
            self.E_cutoff = None


def readwellparams_sub(file_handle, params: WellParams) -> None:
    """
    Read well parameters from an open file handle (modified in-place).

    The file format expects 9 parameters in order: well width, barrier
    width, potential, well mass, barrier mass, nz, nst, boundary
    condition and cut-off energy (zero or negative for none).
    """
    params.well_width = GetFileParam(file_handle)
    params.barrier_width = GetFileParam(file_handle)
    params.potential = GetFileParam(file_handle)
    params.well_mass = GetFileParam(file_handle)
    params.barrier_mass = GetFileParam(file_handle)
    params.nz = int(GetFileParam(file_handle))
    params.nst = int(GetFileParam(file_handle))
    params.boundary_condition = GetFileToken(file_handle)
    E_cutoff = GetFileParam(file_handle)
    params.E_cutoff = E_cutoff if E_cutoff > 0.0 else None
    params.__post_init__()


def ReadWellParams(filename: str) -> WellParams:
    """Read well parameters from a file."""
    params = WellParams()
    with open(filename, "r", encoding="utf-8") as fh:
        readwellparams_sub(fh, params)
    log.debug("Read well parameters from %s: %s", filename, params)
    return params


def WriteWellParams(filename: str, params: WellParams) -> None:
    """Write well parameters to a file in the format read by ``ReadWellParams``."""
    E_cutoff = params.E_cutoff if params.E_cutoff is not None else -1.0
    with open(filename, "w", encoding="utf-8") as fh:
        fh.write(f"{params.well_width!r:<25} # well width [A]\n")
        fh.write(f"{params.barrier_width!r:<25} # barrier width [A]\n")
        fh.write(f"{params.potential!r:<25} # barrier potential [meV]\n")
        fh.write(f"{params.well_mass!r:<25} # well mass [m0]\n")
        fh.write(f"{params.barrier_mass!r:<25} # barrier mass [m0]\n")
        fh.write(f"{params.nz:<25d} # number of spatial points\n")
        fh.write(f"{params.nst:<25d} # number of states\n")
        fh.write(f"{params.boundary_condition:<25} # boundary condition\n")
        fh.write(f"{E_cutoff!r:<25} # cut-off energy [meV]\n")
