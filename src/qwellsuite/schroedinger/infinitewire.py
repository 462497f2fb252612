"""
Eigenstates of an infinitely deep rectangular quantum wire.

The wire has cross-section Ly x Lz; the states are products of the
infinite-well solutions in each direction:

    E = (pi hBar)^2 / (2m) ((ny/Ly)^2 + (nz/Lz)^2)
    psi(y, z) = sqrt(2/Ly) sin(ny pi y / Ly) sqrt(2/Lz) sin(nz pi z / Lz)
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from ..libqwellsuite.constants import hBar, meV, pi
from ..libqwellsuite.errors import ValidationError
from ..libqwellsuite.fileio import write_table
from ..libqwellsuite.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class WireState:
    """
    A single wire eigenstate.

    Attributes
    ----------
    ny, nz : int
        Quantum numbers in y and z (from 1)
    E : float
        Energy [J]
    y, z : ndarray
        Sampling positions in each direction [m]
    psi : ndarray, shape (len(y), len(z))
        Wavefunction [1/m]
    """
    ny: int
    nz: int
    E: float
    y: np.ndarray
    z: np.ndarray
    psi: np.ndarray


def infinite_wire_energy(Ly: float, Lz: float, m: float, ny: int, nz: int) -> float:
    """Energy of state (ny, nz) [J]."""
    return (pi * hBar) ** 2 / (2.0 * m) * ((ny / Ly) ** 2 + (nz / Lz) ** 2)


def infinite_wire_states(Ly: float, Lz: float, m: float, nst: int, N: int = 100) -> List[WireState]:
    """
    All states with 1 <= ny, nz <= nst.

    Parameters
    ----------
    Ly, Lz : float
        Wire widths [m]
    m : float
        Effective mass [kg]
    nst : int
        Number of states in each direction
    N : int
        Number of sampling points in each direction

    Returns
    -------
    list of WireState
        ``nst * nst`` states, ordered by ny then nz
    """
    if Ly <= 0.0 or Lz <= 0.0:
        raise ValidationError(f"Wire widths must be positive; got {Ly}, {Lz}")
    if m <= 0.0:
        raise ValidationError(f"Effective mass must be positive; got {m}")
    if N < 2:
        raise ValidationError(f"Need at least 2 points in each direction; got {N}")

    y = np.linspace(0.0, Ly, N)
    z = np.linspace(0.0, Lz, N)

    states = []
    for ny in range(1, nst + 1):
        psi_y = np.sqrt(2.0 / Ly) * np.sin(ny * pi * y / Ly)
        for nz in range(1, nst + 1):
            psi_z = np.sqrt(2.0 / Lz) * np.sin(nz * pi * z / Lz)
            E = infinite_wire_energy(Ly, Lz, m, ny, nz)
            states.append(WireState(ny, nz, E, y, z, np.outer(psi_y, psi_z)))
            log.debug("Wire state (%d, %d): E = %g meV", ny, nz, E / meV)

    return states


def write_wire_states(states: List[WireState], particle: str = "e") -> None:
    """
    Write ``E<particle>.r`` (ny, nz, E [meV]) and one ``cd<ny><nz>.r``
    table (y, z, psi) per state.
    """
    ny = np.array([st.ny for st in states])
    nz = np.array([st.nz for st in states])
    E = np.array([st.E for st in states]) / meV
    write_table(f"E{particle}.r", ny, nz, E)

    for st in states:
        Y, Z = np.meshgrid(st.y, st.z, indexing="ij")
        write_table(f"cd{st.ny}{st.nz}.r", Y.ravel(), Z.ravel(), st.psi.ravel())
