"""
Material properties module.

Accesses the materials database and retrieves band-structure parameters
such as effective masses, band gaps and conduction-band offsets for
binary compounds and their ternary alloys.

Author: qwellsuite developers
"""

import os
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from .mathhelpers import lin_interp
from .logger import get_logger

log = get_logger(__name__)

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

class MatError(IntEnum):
    NOERROR = 0
    NOFILE = 1
    NOTFOUND = 2
    FILE_FORMAT = 3
    OUTOFRANGE = 4


# ---------------------------------------------------------------------------
# Database file paths
# ---------------------------------------------------------------------------

_PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"
_MASTER_DATABASE_FILE = str(_PACKAGE_DATA_DIR / "materials.ini")

# User-overridable local database file
_database_file: str = "materials.ini"


def set_database_file(path: str) -> None:
    """Set the local materials database file path."""
    global _database_file
    _database_file = path
    if not os.path.isfile(path):
        log.warning("Cannot find material database file, %s", path)


def get_database_file() -> str:
    """Return the local materials database file path."""
    return _database_file


# ---------------------------------------------------------------------------
# INI file reader
# ---------------------------------------------------------------------------

def _read_ini_tag_str(
    filepath: str, section: str, tag: str
) -> Tuple[Optional[str], int]:
    """
    Read a tag value from an INI-formatted materials database.

    The INI format uses ``[SECTION]`` headers (case-sensitive) and
    ``tag=value`` entries.  Lines starting with ``::`` are comments.

    Returns (value_string, err) where *err* is 0 on success or non-zero
    on failure.
    """
    try:
        with open(filepath, "r", encoding="utf-8") as fh:
            lines = fh.readlines()
    except FileNotFoundError:
        return None, 1

    section_header = f"[{section}]"
    in_section = False
    for line in lines:
        stripped = line.strip()
        if not in_section:
            if stripped == section_header:
                in_section = True
            continue

        if stripped.startswith("["):
            return None, -1

        if stripped.startswith("::") or stripped == "":
            continue

        if stripped.startswith(tag + "="):
            return stripped[len(tag) + 1:].strip(), 0

    return None, -1


def _read_dbs_tag_str(mat: str, param: str) -> Tuple[Optional[str], int]:
    """Read a string for section *mat* and *param*, local file first."""
    exists_local = os.path.isfile(_database_file)
    exists_master = os.path.isfile(_MASTER_DATABASE_FILE)

    result = None
    err0 = -1

    if exists_local:
        log.debug("Looking in materials database: %s", _database_file)
        result, err0 = _read_ini_tag_str(_database_file, mat.upper(), param)

    if err0 != 0 and exists_master:
        log.debug("Looking in materials database: %s", _MASTER_DATABASE_FILE)
        result, err0 = _read_ini_tag_str(_MASTER_DATABASE_FILE, mat.upper(), param)

    if not exists_local and not exists_master:
        return None, MatError.NOFILE

    if err0 != 0:
        return None, MatError.NOTFOUND

    return result, MatError.NOERROR


def _mat_error_handler(err: int, param: str, mat: str) -> None:
    """Raise the exception that corresponds to a database error code."""
    if err == MatError.NOERROR:
        return
    if err == MatError.NOFILE:
        raise FileNotFoundError(
            f"No materials database exists.  Tried: {_database_file} and {_MASTER_DATABASE_FILE}"
        )
    if err == MatError.NOTFOUND:
        raise LookupError(f"Unknown material '{mat}' or unknown parameter '{param}'.")
    if err == MatError.FILE_FORMAT:
        raise ValueError(f"File format error reading material '{mat}', parameter '{param}'.")
    if err == MatError.OUTOFRANGE:
        raise ValueError(f"Parameter '{param}' for '{mat}' is out of range.")


# ---------------------------------------------------------------------------
# Public look-ups
# ---------------------------------------------------------------------------

def get_string(mat: str, param: str) -> str:
    """Return the raw string stored under *param* for material *mat*."""
    s, err = _read_dbs_tag_str(mat, param)
    _mat_error_handler(err, param, mat)
    return s


def get_param(mat: str, param: str) -> float:
    """Return a single float parameter for material *mat*."""
    s = get_string(mat, param)
    try:
        return float(s.split(",")[0].strip())
    except (ValueError, IndexError):
        _mat_error_handler(MatError.FILE_FORMAT, param, mat)


def get_param_array(mat: str, param: str) -> np.ndarray:
    """Return a comma-separated list of floats for material *mat*."""
    s = get_string(mat, param)
    try:
        return np.array([float(x.strip()) for x in s.split(",") if x.strip()])
    except ValueError:
        _mat_error_handler(MatError.FILE_FORMAT, param, mat)


def _alloy_endpoints(alloy: str) -> Tuple[str, str]:
    return get_string(alloy, "binary-0"), get_string(alloy, "binary-1")


def _alloy_param(alloy: str, param: str, x: float) -> float:
    """Interpolate *param* across a ternary alloy with bowing."""
    if x < 0.0 or x > 1.0:
        _mat_error_handler(MatError.OUTOFRANGE, f"{param} at x={x}", alloy)

    mat0, mat1 = _alloy_endpoints(alloy)
    y0 = get_param(mat0, param)
    y1 = get_param(mat1, param)

    s, err = _read_dbs_tag_str(alloy, f"{param}-bowing")
    bowing = float(s) if err == MatError.NOERROR else 0.0

    return lin_interp(y0, y1, x, bowing)


def effective_mass(alloy: str, x: float) -> float:
    """
    Band-edge effective mass of an alloy, relative to the free electron mass.

    Parameters
    ----------
    alloy : str
        Alloy section name (e.g. ``"AlGaAs"``)
    x : float
        Fraction of the x=1 binary end-point, in [0, 1]
    """
    return _alloy_param(alloy, "me", x)


def bandgap(alloy: str, x: float) -> float:
    """Direct band gap of an alloy [eV]."""
    return _alloy_param(alloy, "Eg", x)


def conduction_band_edge(alloy: str, x: float) -> float:
    """
    Conduction-band edge of an alloy relative to its x=0 end-point [eV].

    The offset is the fixed fraction ``Ec-offset-fraction`` of the band-gap
    difference.
    """
    frac = get_param(alloy, "Ec-offset-fraction")
    return frac * (bandgap(alloy, x) - bandgap(alloy, 0.0))
