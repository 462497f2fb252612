"""
Eigenstate container.

A ``State`` is an energy together with a wavefunction sampled on an evenly
spaced grid.  States are produced by the solvers once a root has
converged, and are persisted as a pair of plain-text tables:

* ``E<id>.r``     : one row per state, (index, energy [meV])
* ``wf_<id><n>.r``: one file per state, (z [m], psi [m^-1/2])
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..libqwellsuite.constants import meV
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import read_table, write_table
from ..libqwellsuite.logger import get_logger
from ..libqwellsuite.mathhelpers import integral

log = get_logger(__name__)

# Relative tolerance on the spacing of a "uniform" grid
_GRID_RTOL = 1e-6


@dataclass(frozen=True, eq=False)
class State:
    """
    A single eigenstate.

    Attributes
    ----------
    E : float
        Energy of the state [J]
    z : ndarray
        Spatial positions [m], strictly increasing and evenly spaced
    psi : ndarray
        Wavefunction amplitude at each position [m^-1/2]
    """
    E: float
    z: np.ndarray
    psi: np.ndarray
    dz: float = field(init=False)

    def __post_init__(self):
        z = np.array(self.z, dtype=np.float64)
        psi = np.array(self.psi, dtype=np.float64)

        if z.ndim != 1 or psi.ndim != 1:
            raise ValidationError("State positions and amplitudes must be 1D arrays")
        if z.size != psi.size:
            raise ValidationError(
                f"State has {z.size} positions but {psi.size} wavefunction samples"
            )
        if z.size < 2:
            raise ValidationError("A state needs at least two spatial samples")

        steps = np.diff(z)
        dz = (z[-1] - z[0]) / (z.size - 1)

        if np.any(steps <= 0.0):
            raise ValidationError("State positions must be strictly increasing")
        if not np.allclose(steps, dz, rtol=_GRID_RTOL, atol=0.0):
            raise ValidationError("State positions must be evenly spaced")

        z.setflags(write=False)
        psi.setflags(write=False)
        object.__setattr__(self, "E", float(self.E))
        object.__setattr__(self, "z", z)
        object.__setattr__(self, "psi", psi)
        object.__setattr__(self, "dz", float(dz))

    def __len__(self) -> int:
        return self.z.size

    @property
    def size(self) -> int:
        """Number of spatial samples."""
        return self.z.size

    def get_E(self) -> float:
        return self.E

    def get_dz(self) -> float:
        return self.dz

    def psi_squared(self) -> np.ndarray:
        """Probability density |psi|^2 at each point [m^-1]."""
        return self.psi * self.psi

    def norm(self) -> float:
        """Integral of |psi|^2 over the grid."""
        return integral(self.psi_squared(), self.dz)

    def normalised(self) -> "State":
        """
        Return a copy of this state with unit probability.

        Raises
        ------
        DomainError
            If the wavefunction is zero everywhere.
        """
        N = self.norm()
        if not np.isfinite(N) or N <= 0.0:
            raise DomainError(f"Cannot normalise wavefunction with norm {N} (E = {self.E / meV} meV)")
        return State(self.E, self.z, self.psi / np.sqrt(N))

    def max_index(self) -> int:
        """Index of the point where |psi| is largest."""
        return int(np.argmax(np.abs(self.psi)))

    @staticmethod
    def write_to_file(energy_filename: str,
                      wf_prefix: str,
                      wf_ext: str,
                      states: Sequence["State"],
                      with_num: bool = True) -> None:
        """
        Write a set of states to file.

        Parameters
        ----------
        energy_filename : str
            Name of file for energies, e.g. ``"Ee.r"``
        wf_prefix : str
            Prefix for wavefunction filenames, e.g. ``"wf_e"``
        wf_ext : str
            Extension for wavefunction filenames, e.g. ``".r"``
        states : sequence of State
            States to write; the n-th state (from 1) goes to
            ``wf_prefix + str(n) + wf_ext``
        with_num : bool
            Write the state index as the first column of the energy file
        """
        E_meV = np.array([st.E for st in states]) / meV
        write_table(energy_filename, E_meV, with_num=with_num)

        for ist, st in enumerate(states, start=1):
            write_table(f"{wf_prefix}{ist}{wf_ext}", st.z, st.psi)

        log.info("Wrote %d states to %s", len(states), energy_filename)

    @staticmethod
    def read_from_file(energy_filename: str,
                       wf_prefix: str,
                       wf_ext: str) -> List["State"]:
        """
        Read a set of states from file.

        The energy file may contain either a single column of energies or
        (index, energy) pairs; energies are in meV.

        Returns
        -------
        list of State
        """
        cols = read_table(energy_filename)
        if not cols or cols[0].size == 0:
            raise ValidationError(f"No states listed in '{energy_filename}'")
        E_meV = cols[-1]

        states = []
        for ist, E in enumerate(E_meV, start=1):
            wf_filename = f"{wf_prefix}{ist}{wf_ext}"
            z, psi = read_table(wf_filename, ncols=2)
            states.append(State(E * meV, z, psi))

        log.debug("Read %d states from %s", len(states), energy_filename)
        return states
