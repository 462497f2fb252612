"""
Plain-text table input and output.

Every qwellsuite program exchanges data as whitespace-delimited numeric
columns (``E*.r``, ``wf_*.r``, ``N.r``, ``Ef.r`` ...).  ``read_table``
returns the columns of such a file; ``write_table`` writes columns back
out with full double precision.
"""

import os
from typing import List, Optional

import numpy as np

from .errors import ValidationError
from .logger import get_logger

log = get_logger(__name__)


def read_table(filename: str, ncols: Optional[int] = None) -> List[np.ndarray]:
    """
    Read a whitespace-delimited numeric table.

    Blank lines and lines starting with ``#`` are ignored.

    Parameters
    ----------
    filename : str
        Path to the data file
    ncols : int, optional
        Number of columns expected.  If given, a file with a different
        number of columns raises ``ValidationError``.

    Returns
    -------
    list of ndarray
        One float64 array per column

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValidationError
        If the rows have differing numbers of columns, a token is not a
        number, or the column count does not match *ncols*
    """
    if not os.path.isfile(filename):
        raise FileNotFoundError(f"Cannot open input file '{filename}'")

    rows = []
    with open(filename, "r", encoding="utf-8") as fh:
        for iline, line in enumerate(fh, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            try:
                rows.append([float(tok) for tok in stripped.split()])
            except ValueError as exc:
                raise ValidationError(
                    f"Could not parse line {iline} of '{filename}': {stripped}"
                ) from exc

    if not rows:
        log.warning("Table '%s' contains no data", filename)
        return [np.empty(0) for _ in range(ncols or 0)]

    width = len(rows[0])
    for iline, row in enumerate(rows, start=1):
        if len(row) != width:
            raise ValidationError(
                f"Row {iline} of '{filename}' has {len(row)} columns; expected {width}."
            )

    if ncols is not None and width != ncols:
        raise ValidationError(
            f"Table '{filename}' has {width} columns; expected {ncols}."
        )

    data = np.array(rows, dtype=np.float64)
    log.debug("Read %d rows x %d columns from %s", data.shape[0], width, filename)
    return [data[:, icol].copy() for icol in range(width)]


def write_table(filename: str, *columns, with_num: bool = False) -> None:
    """
    Write equal-length columns to a whitespace-delimited text file.

    Parameters
    ----------
    filename : str
        Path to the output file
    *columns : array_like
        Columns of data.  All must have the same length.
    with_num : bool, optional
        If True, prepend a 1-based integer index column.
    """
    if not columns:
        raise ValidationError(f"No data supplied for '{filename}'")

    cols = [np.asarray(c, dtype=np.float64).ravel() for c in columns]
    n = cols[0].size

    for icol, c in enumerate(cols):
        if c.size != n:
            raise ValidationError(
                f"Column {icol} for '{filename}' has {c.size} rows; expected {n}."
            )

    fmt = ["%.17e"] * len(cols)
    if with_num:
        cols.insert(0, np.arange(1, n + 1, dtype=np.float64))
        fmt.insert(0, "%d")

    np.savetxt(filename, np.column_stack(cols), fmt=fmt, delimiter=" ")
    log.debug("Wrote %d rows to %s", n, filename)
