"""
Bound states of a single finite square well.

The well of width ``a`` and depth ``V`` sits between two barriers.  With
the normalised well depth

    u0 = (a/2) sqrt(2 m_w V) / hBar

and the normalised wave-vector ``v = k a/2``, the matching condition on
each branch ``i = floor(v / (pi/2))`` is

    lhs(v) = rhs_i(v)

where ``lhs`` is the (scaled) barrier decay term and ``rhs_i`` is
``v tan(v)`` on even branches and ``-v cot(v)`` on odd branches.  Both
conditions are zeros of

    f(v) = sin(2 (v - arctan(lhs(v) / v)))

which is finite for every energy, so the root finder can scan it without
stepping over asymptotes.  ``v - arctan(lhs/v)`` increases monotonically
from -pi/2 at the band edge, so the i-th zero lies on branch i for any
mass ratio.
"""

import logging
from typing import List, Optional, Tuple, Union

import numpy as np

from ..core.params import WellParams
from ..core.state import State
from ..libqwellsuite.constants import angstrom, hBar, me, meV, pi, pio2
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import write_table
from ..libqwellsuite.logger import get_logger, log_energies
from .boundary import BoundaryCondition, boundary_condition
from .rootfinder import find_bound_states

log = get_logger(__name__)

# Fraction of each branch sampled for the matching-equation tables
_BRANCH_FRACTION = 0.999999

# Default scan step as a fraction of the lowest infinite-well level
_STEP_FRACTION = 0.1


class FiniteWellSolver:
    """
    Solver for a symmetric finite well.

    Parameters
    ----------
    well_width : float
        Width of the well [m]
    barrier_width : float
        Width of each barrier in the output grid [m]
    V : float
        Barrier height [J]
    m_w, m_b : float
        Effective masses in the well and the barrier [kg]
    nz : int
        Number of spatial points in the output wavefunctions
    bc : str or BoundaryCondition
        Interface matching rule
    nst_max : int
        Maximum number of states to find
    E_cutoff : float, optional
        Cut-off energy for solutions [J]; defaults to the barrier height
    energy_step : float, optional
        Scan increment for the root finder [J]; defaults to the smallest of
        1 meV, V/1000 and a tenth of the lowest infinite-well level
    """

    def __init__(self,
                 well_width: float,
                 barrier_width: float,
                 V: float,
                 m_w: float,
                 m_b: float,
                 nz: int = 1000,
                 bc: Union[str, BoundaryCondition] = "continuous-flux",
                 nst_max: int = 1,
                 E_cutoff: Optional[float] = None,
                 energy_step: Optional[float] = None):
        if well_width < 0.0 or barrier_width < 0.0:
            raise ValidationError(
                f"Well and barrier widths must be non-negative; got {well_width}, {barrier_width}"
            )
        if V < 0.0:
            raise ValidationError(f"Barrier height must be non-negative; got {V / meV} meV")
        if m_w <= 0.0 or m_b <= 0.0:
            raise ValidationError(f"Effective masses must be positive; got {m_w}, {m_b}")
        if nz < 3:
            raise ValidationError(f"Need at least 3 spatial points; got {nz}")

        self.a = float(well_width)
        self.b = float(barrier_width)
        self.V = float(V)
        self.m_w = float(m_w)
        self.m_b = float(m_b)
        self.nz = int(nz)
        self.nst_max = int(nst_max)
        self.bc = boundary_condition(bc) if isinstance(bc, str) else bc

        # Quantities fixed by the boundary condition
        self._m_B = self.bc.barrier_mass(self.m_w, self.m_b)
        self._ratio = self.bc.mass_ratio(self.m_w, self.m_b)

        self._E_cutoff = self.V
        if E_cutoff is not None:
            self.set_E_cutoff(E_cutoff)

        if energy_step is None:
            energy_step = self._default_energy_step()
        self.energy_step = float(energy_step)

    def _default_energy_step(self) -> float:
        """
        Scan step fine enough to separate neighbouring levels [J].

        State i lies between the i-th and (i+1)-th levels of an infinitely
        deep well of the same width, so the levels of a wide or deep well
        are spaced by multiples of the lowest infinite-well level.
        """
        step = meV
        if self.V > 0.0:
            step = min(step, self.V / 1000.0)
        if self.a > 0.0:
            E1_inf = (pi * hBar / self.a) ** 2 / (2.0 * self.m_w)
            step = min(step, _STEP_FRACTION * E1_inf)
        return step

    @classmethod
    def from_params(cls, params: WellParams) -> "FiniteWellSolver":
        """Create a solver from a parameter file record (angstrom, meV, m0)."""
        E_cutoff = params.E_cutoff * meV if params.E_cutoff is not None else None
        return cls(params.well_width * angstrom,
                   params.barrier_width * angstrom,
                   params.potential * meV,
                   params.well_mass * me,
                   params.barrier_mass * me,
                   nz=params.nz,
                   bc=params.boundary_condition,
                   nst_max=params.nst,
                   E_cutoff=E_cutoff)

    # ------------------------------------------------------------------
    # Wave-vectors
    # ------------------------------------------------------------------

    @property
    def u0(self) -> float:
        """Normalised well depth."""
        return 0.5 * self.a * np.sqrt(2.0 * self.m_w * self.V) / hBar

    def get_k(self, E: float) -> float:
        """Wave-vector inside the well [1/m]."""
        if E < 0.0:
            raise DomainError(f"Energy {E / meV} meV lies below the well bottom")
        return np.sqrt(2.0 * self.m_w * E) / hBar

    def get_K(self, E: float) -> float:
        """Decay constant in the barrier [1/m]; zero at or above the barrier."""
        if E >= self.V:
            return 0.0
        return np.sqrt(2.0 * self._m_B * (self.V - E)) / hBar

    def get_v(self, E: float) -> float:
        """Normalised wave-vector k a/2."""
        return 0.5 * self.a * self.get_k(max(E, 0.0))

    # ------------------------------------------------------------------
    # Matching equation
    # ------------------------------------------------------------------

    def get_lhs(self, v):
        """
        Barrier term of the matching equation as a function of v.

        Equal to ``ratio * K a/2``; zero for v at or beyond u0.
        """
        v = np.asarray(v, dtype=np.float64)
        arg = np.clip(self.u0 ** 2 - v * v, 0.0, None)
        lhs = self._ratio * np.sqrt(self._m_B / self.m_w * arg)
        return float(lhs) if lhs.ndim == 0 else lhs

    @staticmethod
    def get_rhs(v):
        """Well term of the matching equation on the branch containing v."""
        v = np.asarray(v, dtype=np.float64)
        branch = np.floor(v / pio2).astype(np.int64)
        with np.errstate(divide="ignore", invalid="ignore"):
            rhs = np.where(branch % 2 == 0, v * np.tan(v), -v / np.tan(v))
        return float(rhs) if rhs.ndim == 0 else rhs

    def _phase(self, E: float) -> float:
        v = self.get_v(E)
        return v - np.arctan2(self.get_lhs(v), v)

    def residual(self, E: float) -> float:
        """
        Pole-free matching residual; zero at each bound-state energy [J].

        A well of zero width has no states and returns a constant.
        """
        if self.a == 0.0:
            return 1.0
        return float(np.sin(2.0 * self._phase(E)))

    def get_n_bound(self) -> int:
        """Number of bound states in the well."""
        if self.a == 0.0 or self.V == 0.0:
            return 0
        return int(np.ceil(self.u0 / pio2))

    def set_E_cutoff(self, E_cutoff: float) -> None:
        """Set the cut-off energy for solutions [J]."""
        if E_cutoff <= 0.0:
            raise ValidationError(f"Cut-off energy must be positive; got {E_cutoff / meV} meV")
        if E_cutoff > self.V:
            log.warning("Cut-off energy %g meV lies above the barrier (%g meV)",
                        E_cutoff / meV, self.V / meV)
        self._E_cutoff = float(E_cutoff)

    def get_E_cutoff(self) -> float:
        return self._E_cutoff

    # ------------------------------------------------------------------
    # Solutions
    # ------------------------------------------------------------------

    def get_energies(self) -> np.ndarray:
        """Bound-state energies [J], lowest first."""
        n_bound = self.get_n_bound()
        if n_bound == 0:
            log.warning("Well has no bound states")
            return np.empty(0)

        nst = self.nst_max
        if nst > n_bound:
            log.warning("Requested %d states but only %d are bound", nst, n_bound)
            nst = n_bound

        return find_bound_states(self.residual, 0.0, nst,
                                 energy_cutoff=self._E_cutoff,
                                 energy_step=self.energy_step)

    def get_z(self) -> np.ndarray:
        """Output grid spanning barrier, well and barrier [m]."""
        return np.linspace(0.0, self.a + 2.0 * self.b, self.nz)

    def wavefunction(self, E: float) -> State:
        """Normalised wavefunction of the bound state at energy E."""
        z = self.get_z()
        s = z - (self.b + 0.5 * self.a)
        k = self.get_k(E)
        K = self.get_K(E)

        branch = int(round(self._phase(E) / pio2))
        even = branch % 2 == 0

        inside = np.abs(s) <= 0.5 * self.a
        outside_decay = np.exp(-K * (np.abs(s) - 0.5 * self.a))
        if even:
            psi = np.where(inside, np.cos(k * s), np.cos(0.5 * k * self.a) * outside_decay)
        else:
            psi = np.where(inside, np.sin(k * s),
                           np.sign(s) * np.sin(0.5 * k * self.a) * outside_decay)

        return State(E, z, psi).normalised()

    def get_solutions(self) -> List[State]:
        """All bound states found below the cut-off, lowest first."""
        states = [self.wavefunction(E) for E in self.get_energies()]
        log_energies(log, [st.E for st in states], logging.DEBUG)
        return states

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def matching_equations(self, nv_branch: int = 1000) -> Tuple[Tuple[np.ndarray, np.ndarray],
                                                                  List[Tuple[np.ndarray, np.ndarray]]]:
        """
        Sample both sides of the matching equation.

        Returns
        -------
        lhs : (v, lhs(v))
            Barrier term across every branch, ``nv_branch`` points per
            branch; zero beyond u0
        rhs : list of (v, rhs_i(v))
            Well term on each branch; one more branch than bound states,
            each stopping just short of its asymptote
        """
        n_branches = self.get_n_bound() + 1
        v_lhs = np.linspace(0.0, n_branches * pio2, n_branches * nv_branch)
        lhs = (v_lhs, self.get_lhs(v_lhs))

        rhs = []
        for ibranch in range(n_branches):
            v = np.linspace(ibranch * pio2, (ibranch + _BRANCH_FRACTION) * pio2, nv_branch)
            rhs.append((v, self.get_rhs(v)))
        return lhs, rhs

    def write_matching_equations(self, nv_branch: int = 1000,
                                 lhs_filename: str = "lhs.r",
                                 rhs_prefix: str = "rhs_") -> None:
        """Write ``lhs.r`` and ``rhs_<i>.r`` tables, branches counted from 1."""
        (v_lhs, lhs), rhs = self.matching_equations(nv_branch)
        write_table(lhs_filename, v_lhs, lhs)
        for ibranch, (v, y) in enumerate(rhs, start=1):
            write_table(f"{rhs_prefix}{ibranch}.r", v, y)

