"""
Variational binding energy of a donor in a heterostructure.

Uses the two-dimensional trial wavefunction

    Psi = chi(z) exp(-r''/lambda),    r'' = sqrt(x^2 + y^2)

For a fixed Bohr radius lambda, integrating out the in-plane coordinates
leaves a one-dimensional equation for chi(z)

    alpha chi'' + beta chi' + gamma(z) chi = 0

with alpha = I1, beta = 2 I2 and

    gamma = I3 + (2 m e^2 / hBar^2 / (4 pi eps)) I4(z - r_d)
            - (2 m / hBar^2) (V(z) - E) I1

which is solved by shooting.  The Bohr radius is then increased until the
energy stops decreasing; the lowest energy is the donor state.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from numba import jit

from ..core.state import State
from ..libqwellsuite.constants import angstrom, e, eps0, hBar, me, meV, pi
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import read_table, write_table
from ..libqwellsuite.logger import get_logger, quieted
from .rootfinder import find_bound_states

log = get_logger(__name__)

# Starting amplitude of the wavefunction deep in the left barrier
_DELTA_PSI = 1.0e-10


def I_1(lambda_: float) -> float:
    """Binding energy integral I1 = 2 pi lambda^2 / 4 [m^2]."""
    return 2.0 * pi * lambda_ * lambda_ / 4.0


def I_2(lambda_: float) -> float:
    """Binding energy integral I2; vanishes for the 2D trial function [m]."""
    return 0.0


def I_3(lambda_: float) -> float:
    """Binding energy integral I3 = 2 pi (-1/4)."""
    return 2.0 * pi * (-0.25)


@jit(nopython=True, cache=True)
def I_4_dp(lambda_: float, z_dash: np.ndarray, N_w: int) -> np.ndarray:
    """
    Binding energy integral I4 at each electron-donor separation [m].

        I4 = 2 pi int_{|z'|}^inf exp(-2 sqrt(r'^2 - z'^2)/lambda) dr'

    evaluated with the substitution r' = |z'| (1/w + w)/2 and a midpoint
    rule of N_w strips in w over (0, 1).  I4 is pi lambda exactly
    in the plane of the donor.
    """
    n = z_dash.size
    I4 = np.zeros(n)
    dw = 1.0 / N_w
    for i in range(n):
        zd = abs(z_dash[i])
        if zd == 0.0:
            I4[i] = pi * lambda_
            continue
        s = 0.0
        for j in range(N_w):
            w = (j + 0.5) * dw
            s += np.exp(-zd * (1.0 / w - w) / lambda_) * zd * (1.0 - w * w) / (2.0 * w * w) * dw
        I4[i] = 2.0 * pi * s
    return I4


@jit(nopython=True, cache=True)
def donor_shoot_dp(E: float, V: np.ndarray, dz: float, m: float,
                   alpha: float, beta: float, gamma0: np.ndarray) -> np.ndarray:
    """
    Propagate chi(z) across the grid at energy E.

    *gamma0* is the energy-independent part of gamma at each point.
    """
    n = V.size
    psi = np.zeros(n)
    kappa = np.sqrt(max(2.0 * m * (V[1] - E), 0.0)) / hBar
    psi[0] = _DELTA_PSI
    psi[1] = psi[0] * np.exp(kappa * dz)
    c = 2.0 * m / (hBar * hBar) * alpha
    for i in range(1, n - 1):
        gamma = gamma0[i] - c * (V[i] - E)
        psi[i + 1] = ((-1.0 + beta * dz / (2.0 * alpha)) * psi[i - 1]
                      + (2.0 - dz * dz * gamma / alpha) * psi[i]) / (1.0 + beta * dz / (2.0 * alpha))
    return psi


@dataclass(frozen=True, eq=False)
class DonorResult:
    """Variational solution for one donor position."""
    r_d: float
    E: float
    lambda_0: float
    state: State


class DonorSolver2D:
    """
    Donor states in a potential profile using the 2D trial wavefunction.

    Parameters
    ----------
    z : array_like
        Evenly spaced positions [m]
    V : array_like
        Potential at each position [J]
    m : float
        Effective mass [kg]
    epsilon : float
        Permittivity [F/m]
    energy_step : float
        Scan increment for the energy search [J]
    lambda_start, lambda_step : float
        First Bohr radius and its increment [m]
    lambda_stop : float, optional
        Last Bohr radius [m]; if omitted the search stops as soon as the
        energy no longer decreases
    N_w : int
        Number of strips in the I4 integral
    """

    def __init__(self, z, V,
                 m: float = 0.067 * me,
                 epsilon: float = 13.18 * eps0,
                 energy_step: float = meV,
                 lambda_start: float = 50.0 * angstrom,
                 lambda_step: float = 1.0 * angstrom,
                 lambda_stop: Optional[float] = None,
                 N_w: int = 100):
        self.z = np.asarray(z, dtype=np.float64)
        self.V = np.ascontiguousarray(V, dtype=np.float64)
        if self.z.size != self.V.size:
            raise ValidationError(
                f"Potential has {self.V.size} values but the grid has {self.z.size} points"
            )
        if self.z.size < 3:
            raise ValidationError("Need at least 3 points in the potential profile")
        if lambda_start <= 0.0 or lambda_step <= 0.0:
            raise ValidationError("Bohr radius start and increment must be positive")

        self.dz = (self.z[-1] - self.z[0]) / (self.z.size - 1)
        self.m = float(m)
        self.epsilon = float(epsilon)
        self.energy_step = float(energy_step)
        self.lambda_start = float(lambda_start)
        self.lambda_step = float(lambda_step)
        self.lambda_stop = lambda_stop
        self.N_w = int(N_w)

    @classmethod
    def from_file(cls, potential_filename: str = "v.r", **kwargs) -> "DonorSolver2D":
        """Read the (z [m], V [J]) profile from a table."""
        z, V = read_table(potential_filename, ncols=2)
        return cls(z, V, **kwargs)

    # ------------------------------------------------------------------
    # Fixed Bohr radius
    # ------------------------------------------------------------------

    def _coefficients(self, lambda_: float, r_d: float):
        alpha = I_1(lambda_)
        beta = 2.0 * I_2(lambda_)
        I4 = I_4_dp(lambda_, self.z - r_d, self.N_w)
        gamma0 = I_3(lambda_) + 2.0 * self.m * (e / hBar) ** 2 / (4.0 * pi * self.epsilon) * I4
        return alpha, beta, gamma0

    def residual_function(self, lambda_: float, r_d: float):
        """
        Residual in E for a fixed Bohr radius and donor position.

        The energy-independent coefficients are computed once here.
        """
        alpha, beta, gamma0 = self._coefficients(lambda_, r_d)

        def residual(E):
            psi = donor_shoot_dp(E, self.V, self.dz, self.m, alpha, beta, gamma0)
            return psi[-1] - _DELTA_PSI

        return residual

    def psi_at_inf(self, E: float, lambda_: float, r_d: float) -> float:
        """Departure of chi from its starting value at the far edge."""
        return self.residual_function(lambda_, r_d)(E)

    def solve_energy(self, lambda_: float, r_d: float) -> float:
        """
        Lowest energy for a fixed Bohr radius [J].

        Raises
        ------
        DomainError
            If no root is found
        """
        residual = self.residual_function(lambda_, r_d)

        # Start below the potential minimum by the free-donor binding energy
        E_start = self.V.min() - e * e / (4.0 * pi * self.epsilon * lambda_)
        # One search per lambda; keep the per-state INFO lines out of the log
        with quieted(find_bound_states.__module__):
            roots = find_bound_states(residual, E_start, 1, energy_step=self.energy_step)
        if roots.size == 0:
            raise DomainError(
                f"No donor state found for r_d = {r_d / angstrom} A, lambda = {lambda_ / angstrom} A"
            )
        return float(roots[0])

    def wavefunction(self, E: float, lambda_: float, r_d: float) -> State:
        """Normalised chi(z) at energy E."""
        alpha, beta, gamma0 = self._coefficients(lambda_, r_d)
        psi = donor_shoot_dp(E, self.V, self.dz, self.m, alpha, beta, gamma0)
        return State(E, self.z, psi).normalised()

    # ------------------------------------------------------------------
    # Variational search
    # ------------------------------------------------------------------

    def solve(self, r_d: float) -> DonorResult:
        """Minimise the energy over lambda for a donor at r_d [m]."""
        E_min = np.inf
        lambda_0 = self.lambda_start
        lambda_ = self.lambda_start

        while True:
            E = self.solve_energy(lambda_, r_d)
            log.debug("r_d %g A lambda %g A energy %g meV",
                      r_d / angstrom, lambda_ / angstrom, E / meV)

            improved = E < E_min
            if improved:
                E_min = E
                lambda_0 = lambda_
            lambda_ += self.lambda_step

            if self.lambda_stop is None:
                if not improved:
                    break
            elif lambda_ >= self.lambda_stop:
                break

        log.info("r_d = %g A: E = %g meV, lambda = %g A",
                 r_d / angstrom, E_min / meV, lambda_0 / angstrom)
        return DonorResult(r_d, E_min, lambda_0, self.wavefunction(E_min, lambda_0, r_d))

    def solve_positions(self, r_d: Sequence[float]) -> List[DonorResult]:
        """Solve for each donor position in turn."""
        return [self.solve(float(r)) for r in r_d]


def write_donor_results(results: Sequence[DonorResult],
                        energy_filename: str = "e.r",
                        lambda_filename: str = "l.r",
                        wf_prefix: str = "wf",
                        wf_ext: str = ".r") -> None:
    """
    Write energies (r_d [A], E [meV]), Bohr radii (r_d [A], lambda [A]) and
    one wavefunction table per donor, counted from 0.
    """
    r_d = np.array([res.r_d for res in results]) / angstrom
    write_table(energy_filename, r_d, np.array([res.E for res in results]) / meV)
    write_table(lambda_filename, r_d, np.array([res.lambda_0 for res in results]) / angstrom)
    for i_d, res in enumerate(results):
        write_table(f"{wf_prefix}{i_d}{wf_ext}", res.state.z, res.state.psi)
