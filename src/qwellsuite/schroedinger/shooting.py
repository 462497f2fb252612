"""
Shooting-method solver for an arbitrary one-dimensional potential.

The Schroedinger equation with a constant effective mass is discretised
with the three-point stencil

    psi[i+1] = (2 + 2 m dz^2 (V[i] - E) / hBar^2) psi[i] - psi[i-1]

starting from psi[0] = 0, psi[1] = 1.  At an eigenvalue the wavefunction
returns to zero at the far edge of the structure, so the residual is the
last sample of psi.
"""

from typing import List, Optional

import numpy as np
from numba import jit

from ..core.state import State
from ..libqwellsuite.constants import hBar, me, meV
from ..libqwellsuite.errors import ValidationError
from ..libqwellsuite.fileio import read_table
from ..libqwellsuite.logger import get_logger
from .rootfinder import find_bound_states

log = get_logger(__name__)


@jit(nopython=True, cache=True)
def shoot_dp(E: float, V: np.ndarray, dz: float, m: float) -> np.ndarray:
    """Propagate psi across the grid at energy E (unnormalised)."""
    n = V.size
    psi = np.zeros(n)
    psi[1] = 1.0
    c = 2.0 * m * dz * dz / (hBar * hBar)
    for i in range(1, n - 1):
        psi[i + 1] = (2.0 + c * (V[i] - E)) * psi[i] - psi[i - 1]
    return psi


@jit(nopython=True, cache=True)
def psi_at_inf_dp(E: float, V: np.ndarray, dz: float, m: float) -> float:
    """Wavefunction at the far edge of the grid at energy E."""
    n = V.size
    c = 2.0 * m * dz * dz / (hBar * hBar)
    psi0 = 0.0
    psi1 = 1.0
    for i in range(1, n - 1):
        psi2 = (2.0 + c * (V[i] - E)) * psi1 - psi0
        psi0 = psi1
        psi1 = psi2
    return psi1


class ShootingSolver:
    """
    Bound states of a potential profile V(z) with a constant mass.

    Parameters
    ----------
    z : array_like
        Evenly spaced positions [m]
    V : array_like
        Potential at each position [J]
    m : float
        Effective mass [kg]
    nst : int
        Number of states to find
    E_cutoff : float, optional
        Stop searching above this energy [J]
    energy_step : float
        Scan increment [J]
    """

    def __init__(self, z, V, m: float = 0.067 * me, nst: int = 1,
                 E_cutoff: Optional[float] = None, energy_step: float = meV):
        self.z = np.asarray(z, dtype=np.float64)
        self.V = np.ascontiguousarray(V, dtype=np.float64)

        if self.z.size != self.V.size:
            raise ValidationError(
                f"Potential has {self.V.size} values but the grid has {self.z.size} points"
            )
        if self.z.size < 3:
            raise ValidationError("Need at least 3 points in the potential profile")
        if m <= 0.0:
            raise ValidationError(f"Effective mass must be positive; got {m}")

        self.dz = (self.z[-1] - self.z[0]) / (self.z.size - 1)
        self.m = float(m)
        self.nst = int(nst)
        self.E_cutoff = E_cutoff
        self.energy_step = float(energy_step)

    @classmethod
    def from_file(cls, potential_filename: str = "v.r", m: float = 0.067 * me,
                  nst: int = 1, **kwargs) -> "ShootingSolver":
        """Read the (z [m], V [J]) profile from a table."""
        z, V = read_table(potential_filename, ncols=2)
        return cls(z, V, m, nst, **kwargs)

    def psi_at_inf(self, E: float) -> float:
        """Residual: unnormalised wavefunction at the far boundary."""
        return psi_at_inf_dp(E, self.V, self.dz, self.m)

    def wavefunction(self, E: float) -> State:
        """Normalised wavefunction at energy E."""
        psi = shoot_dp(E, self.V, self.dz, self.m)
        return State(E, self.z, psi).normalised()

    def get_solutions(self) -> List[State]:
        """Bound states, lowest first."""
        energies = find_bound_states(self.psi_at_inf, float(self.V.min()), self.nst,
                                     energy_cutoff=self.E_cutoff,
                                     energy_step=self.energy_step)
        return [self.wavefunction(E) for E in energies]
