"""
Alloy-disorder scattering rates between subbands.

The scattering rate from subband i to subband f is independent of the
initial wave-vector:

    W = m Omega Vad^2 / hBar^3  int psi_i^2 psi_f^2 x (1 - x) dz

where Omega = a^3 / Ncell is the volume of each scatterer.  With
final-state blocking the rate is multiplied by 1 - f_FD(kf).  The mean
rate over the Fermi-Dirac distribution of the initial subband is

    Wbar = int W(ki) ki f_FD(ki) dki / (pi N_i)
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.subband import Subband
from ..libqwellsuite.constants import angstrom, hBar, me, meV, pi
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import read_table, write_table
from ..libqwellsuite.logger import get_logger
from ..libqwellsuite.mathhelpers import integral

log = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class ScatteringRate:
    """
    Scattering rate for one transition.

    Attributes
    ----------
    i, f : int
        Initial and final subband indices (from 1)
    E_total : ndarray
        Total energy of each initial state [J]
    Wif : ndarray
        Scattering rate at each initial state [1/s]
    Wbar : float
        Fermi-Dirac weighted mean rate [1/s]
    """
    i: int
    f: int
    E_total: np.ndarray
    Wif: np.ndarray
    Wbar: float


def read_transitions(filename: str = "rrp.r") -> List[Tuple[int, int]]:
    """Read (initial, final) subband index pairs, indexed from 1."""
    i_indices, f_indices = read_table(filename, ncols=2)
    return [(int(i), int(f)) for i, f in zip(i_indices, f_indices)]


def alloy_disorder_rates(subbands: Sequence[Subband],
                         transitions: Sequence[Tuple[int, int]],
                         z: np.ndarray,
                         x: np.ndarray,
                         m: float = 0.067 * me,
                         Vad: float = 600.0 * meV,
                         cellfraction: float = 4.0,
                         latticeconst: float = 5.65 * angstrom,
                         T: float = 300.0,
                         E_cutoff: Optional[float] = None,
                         nki: int = 101,
                         blocking: bool = True) -> List[ScatteringRate]:
    """
    Alloy-disorder scattering rates for a list of transitions.

    Parameters
    ----------
    subbands : sequence of Subband
        Subbands with their carrier distributions
    transitions : sequence of (int, int)
        (initial, final) subband indices, counted from 1
    z, x : ndarray
        Alloy-fraction profile [m, dimensionless]
    m : float
        Band-edge effective mass [kg]
    Vad : float
        Alloy-disorder potential [J]
    cellfraction : float
        Number of scatterers per unit cell
    latticeconst : float
        Lattice constant in the growth direction [m]
    T : float
        Temperature of the carrier distribution [K]
    E_cutoff : float, optional
        Maximum kinetic energy in the initial subband [J]; defaults to 5 kT
        above the band edge or Fermi energy
    nki : int
        Number of initial wave-vector samples
    blocking : bool
        Include final-state blocking

    Returns
    -------
    list of ScatteringRate
    """
    z = np.asarray(z, dtype=np.float64)
    x = np.asarray(x, dtype=np.float64)
    if z.size != x.size:
        raise ValidationError(f"Alloy profile has {z.size} positions but {x.size} values")
    if z.size < 2:
        raise ValidationError("Alloy profile needs at least two points")
    if nki < 2:
        raise ValidationError(f"Need at least 2 wave-vector samples; got {nki}")

    dz = z[1] - z[0]
    Omega = latticeconst ** 3 / cellfraction
    n_sb = len(subbands)

    rates = []
    for i, f in transitions:
        if not (1 <= i <= n_sb and 1 <= f <= n_sb):
            raise ValidationError(f"Transition {i}->{f} refers to a missing subband (have {n_sb})")

        isb = subbands[i - 1]
        fsb = subbands[f - 1]
        Ei = isb.get_E()
        Ef = fsb.get_E()

        psi_i = isb.psi_array()
        psi_f = fsb.psi_array()
        if psi_i.size != x.size or psi_f.size != x.size:
            raise ValidationError(
                f"Alloy profile has {x.size} points but the wavefunctions have "
                f"{psi_i.size} and {psi_f.size}"
            )

        # Minimum initial wave-vector that allows scattering
        Efi = Ef - Ei
        kimin = np.sqrt(2.0 * m * Efi) / hBar if Efi > 0.0 else 0.0

        if E_cutoff is not None:
            Ecutoff = E_cutoff
        else:
            kimax = isb.get_k_max(T)
            Ecutoff = hBar * hBar * kimax * kimax / (2.0 * m)

        if Ecutoff + Ei < Ef:
            log.warning("No scattering permitted from state %d->%d within the cut-off energy; "
                        "extending range", i, f)
            Ecutoff += Efi

        kimax = isb.k(Ecutoff)
        ki = np.linspace(kimin, kimax, nki)
        dki = ki[1] - ki[0]

        integrand_dz = psi_i * psi_i * psi_f * psi_f * x * (1.0 - x)
        I = m * Omega * Vad * Vad / hBar ** 3 * integral(integrand_dz, dz)

        # Energy-conserving final wave-vector
        kf_sqr = np.clip(ki * ki + 2.0 * m * (Ei - Ef) / (hBar * hBar), 0.0, None)
        kf = np.sqrt(kf_sqr)

        Wif = np.full(nki, I)
        if blocking:
            Wif *= np.array([1.0 - fsb.f_FD_k(k, T) for k in kf])

        E_total = np.array([isb.E_total(k) for k in ki])
        Wbar_integrand_ki = Wif * ki * np.array([isb.f_FD_k(k, T) for k in ki])

        if isb.get_pop() == 0.0:
            raise DomainError(f"Subband {i} is empty; cannot average the {i}->{f} rate")
        Wbar = integral(Wbar_integrand_ki, dki) / (pi * isb.get_pop())

        log.info("Transition %d->%d: mean rate %g s^-1", i, f, Wbar)
        rates.append(ScatteringRate(i, f, E_total, Wif, Wbar))

    return rates


def write_rates(rates: Sequence[ScatteringRate],
                prefix: str = "ado",
                avg_filename: str = "ado-avg.dat") -> None:
    """
    Write ``<prefix><i><f>.r`` (total energy [meV], rate [1/s]) for each
    transition and the mean rates as (i, f, Wbar) rows.
    """
    for rate in rates:
        write_table(f"{prefix}{rate.i}{rate.f}.r", rate.E_total / meV, rate.Wif)

    write_table(avg_filename,
                np.array([rate.i for rate in rates]),
                np.array([rate.f for rate in rates]),
                np.array([rate.Wbar for rate in rates]))
