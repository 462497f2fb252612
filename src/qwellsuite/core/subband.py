"""
A subband in a two-dimensional system.

A subband wraps the ground state of a confined carrier together with the
in-plane carrier distribution (population and quasi-Fermi energy) and the
in-plane dispersion.  The dispersion is parabolic unless a
non-parabolicity coefficient is given, in which case

    Ek (1 + alphad (E - Vc) + alphad Ek) = hBar^2 k^2 / (2 md_0)

where E is the subband minimum and Vc the conduction-band edge at the
point where the wavefunction peaks.

Scattering-rate calculations use the energy/wave-vector conversions,
Fermi-Dirac occupation and density of states provided here.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import numpy as np
from scipy.special import expit

from ..libqwellsuite.constants import e, hBar, kB, meV, pi
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.fileio import read_table
from ..libqwellsuite.logger import get_logger
from .state import State

log = get_logger(__name__)

# Numerical error allowed when testing for the subband minimum
_K_TOLERANCE = 1e-9  # [1/m]
_EK_TOLERANCE = 1e-9 * e  # [J]


@dataclass(frozen=True, eq=False)
class Subband:
    """
    A subband in a 2D system.

    Attributes
    ----------
    ground_state : State
        Confined state at the subband minimum
    Ef : float
        Quasi-Fermi energy [J]
    population : float
        Areal carrier density [m^-2]; must be non-negative
    md_0 : float
        Density-of-states effective mass at the subband minimum [kg]
    z : ndarray
        Spatial positions of the structure [m]
    alphad : float
        Non-parabolicity coefficient [1/J]; zero for a parabolic band
    condband_edge : float
        Conduction-band edge at the wavefunction peak [J]
    """
    ground_state: State
    Ef: float
    population: float
    md_0: float
    z: np.ndarray
    alphad: float = 0.0
    condband_edge: float = 0.0

    def __post_init__(self):
        if self.population < 0.0:
            raise ValidationError(
                f"Subband population must be non-negative; got {self.population} m^-2"
            )
        if self.md_0 <= 0.0:
            raise ValidationError(f"Density-of-states mass must be positive; got {self.md_0} kg")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_E(self) -> float:
        """Energy of the subband minimum [J]."""
        return self.ground_state.E

    def get_pop(self) -> float:
        return self.population

    def get_Ef(self) -> float:
        return self.Ef

    def get_md_0(self) -> float:
        return self.md_0

    def psi_array(self) -> np.ndarray:
        return self.ground_state.psi

    def z_array(self) -> np.ndarray:
        return self.ground_state.z

    def get_k_fermi(self) -> float:
        """Fermi wave-vector [1/m]."""
        return np.sqrt(2.0 * pi * self.population)

    def with_distribution(self, Ef: float, population: float) -> "Subband":
        """Return a copy of this subband with a new carrier distribution."""
        return replace(self, Ef=Ef, population=population)

    # ------------------------------------------------------------------
    # Dispersion
    # ------------------------------------------------------------------

    def Ek(self, k: float) -> float:
        """
        Energy above the subband minimum at an in-plane wave-vector.

        Parameters
        ----------
        k : float
            In-plane wave-vector [1/m]

        Returns
        -------
        float
            Kinetic energy [J]

        Raises
        ------
        DomainError
            If the non-parabolic dispersion has no real, positive solution
        """
        if abs(k) < _K_TOLERANCE:
            return 0.0

        if self.alphad == 0.0:
            return (k * hBar) ** 2 / (2.0 * self.md_0)

        b = 1.0 + self.alphad * (self.get_E() - self.condband_edge)
        four_ac = 4.0 * self.alphad * (-((hBar * k) ** 2) / (2.0 * self.md_0))

        if four_ac > b * b:
            raise DomainError(
                f"No real energy solution exists at wavevector k = {k * 1e-9} nm^{{-1}}."
            )

        Ek = (-b + np.sqrt(b * b - four_ac)) / (2.0 * self.alphad)
        if Ek < 0.0:
            raise DomainError(
                f"Negative energy found at wavevector k = {k * 1e-9} nm^{{-1}}."
            )

        return Ek

    def k(self, Ek: float) -> float:
        """
        Wave-vector at some kinetic energy above the subband minimum.

        Parameters
        ----------
        Ek : float
            Kinetic energy [J]

        Returns
        -------
        float
            Wave-vector [1/m]
        """
        if Ek < 0.0:
            raise DomainError(
                f"Cannot find wavevector at negative kinetic energy, Ek = {Ek / meV} meV."
            )

        if abs(Ek) < _EK_TOLERANCE:
            return 0.0

        if self.alphad == 0.0:
            return np.sqrt(Ek * 2.0 * self.md_0) / hBar

        return np.sqrt(
            Ek * 2.0 * self.md_0
            * (1.0 + self.alphad * (self.get_E() + Ek - self.condband_edge))
        ) / hBar

    def E_total(self, k: float) -> float:
        """Total energy (subband minimum + kinetic) at wave-vector *k* [J]."""
        return self.get_E() + self.Ek(k)

    def get_m_d(self, Ek: float = 0.0) -> float:
        """
        Density-of-states effective mass at a kinetic energy [kg].

        For a non-parabolic band this is hBar^2 k (dk/dEk).
        """
        if self.alphad == 0.0:
            return self.md_0
        return self.md_0 * (
            1.0 + self.alphad * (self.get_E() - self.condband_edge + 2.0 * Ek)
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def rho(self, Ek: float = 0.0) -> float:
        """2D density of states [J^-1 m^-2]."""
        return self.get_m_d(Ek) / (pi * hBar * hBar)

    def f_FD(self, E: float, Te: float) -> float:
        """
        Fermi-Dirac occupation at a total energy.

        Parameters
        ----------
        E : float
            Total energy [J]
        Te : float
            Carrier temperature [K]
        """
        return float(expit(-(E - self.Ef) / (kB * Te)))

    def f_FD_k(self, k: float, Te: float) -> float:
        """Fermi-Dirac occupation at an in-plane wave-vector."""
        return self.f_FD(self.E_total(k), Te)

    def get_k_max(self, Te: float) -> float:
        """
        Wave-vector 5 kT above the larger of the subband minimum and the
        Fermi energy; a practical upper limit for carrier-distribution
        integrals.
        """
        Ek_max = max(self.Ef - self.get_E(), 0.0) + 5.0 * kB * Te
        return self.k(Ek_max)

    # ------------------------------------------------------------------
    # Bulk construction
    # ------------------------------------------------------------------

    @classmethod
    def from_states(cls,
                    states: Sequence[State],
                    Ef: Sequence[float],
                    populations: Sequence[float],
                    z: np.ndarray,
                    m_d_z: np.ndarray,
                    alphad_z: Optional[np.ndarray] = None,
                    V_z: Optional[np.ndarray] = None,
                    source: str = "populations") -> List["Subband"]:
        """
        Build a set of subbands from states and per-subband tables.

        The density-of-states mass (and non-parabolicity, band edge) of
        each subband is taken at the point where its wavefunction has the
        largest magnitude, i.e. in the well.

        Parameters
        ----------
        states : sequence of State
            Ground state of each subband
        Ef : sequence of float
            Quasi-Fermi energy of each subband [J]
        populations : sequence of float
            Population of each subband [m^-2]
        z : ndarray
            Spatial positions of the mass profile [m]
        m_d_z : ndarray
            Density-of-states mass at each position [kg]
        alphad_z, V_z : ndarray, optional
            Non-parabolicity [1/J] and band edge [J] at each position
        source : str
            Name of the population table, used in error messages

        Returns
        -------
        list of Subband
        """
        nst = len(states)
        P = np.asarray(populations, dtype=np.float64)
        Ef = np.asarray(Ef, dtype=np.float64)

        if P.size != nst or Ef.size != nst:
            raise ValidationError(
                f"Incorrect amount of data in {source} ({P.size} lines) or Fermi "
                f"energy table ({Ef.size} lines). Expected {nst} lines."
            )

        for ist, Pi in enumerate(P):
            if Pi < 0.0:
                raise ValidationError(
                    f"Negative population {Pi} m^-2 for subband {ist + 1} in {source}"
                )

        m_d_z = np.asarray(m_d_z, dtype=np.float64)
        profiles = [("mass", m_d_z)]
        if alphad_z is not None:
            alphad_z = np.asarray(alphad_z, dtype=np.float64)
            profiles.append(("non-parabolicity", alphad_z))
        if V_z is not None:
            V_z = np.asarray(V_z, dtype=np.float64)
            profiles.append(("potential", V_z))

        for name, prof in profiles:
            for ist, st in enumerate(states):
                if prof.size != st.size:
                    raise ValidationError(
                        f"The {name} profile has {prof.size} points but state {ist + 1} "
                        f"has {st.size} samples."
                    )

        subbands = []
        for ist, st in enumerate(states):
            iz = st.max_index()
            alphad = float(alphad_z[iz]) if alphad_z is not None else 0.0
            Vc = float(V_z[iz]) if V_z is not None else 0.0
            subbands.append(cls(st, float(Ef[ist]), float(P[ist]), float(m_d_z[iz]),
                                np.asarray(z, dtype=np.float64), alphad, Vc))

        log.debug("Built %d subbands", nst)
        return subbands

    @classmethod
    def read_from_file(cls,
                       energy_filename: str,
                       wf_prefix: str,
                       wf_ext: str,
                       populations_filename: str,
                       fermienergy_filename: str,
                       m_d_filename: str,
                       alphad_filename: Optional[str] = None,
                       potential_filename: Optional[str] = None) -> List["Subband"]:
        """
        Read a set of subbands from data files.

        Parameters
        ----------
        energy_filename : str
            Energy file for the states, e.g. ``"Ee.r"``
        wf_prefix, wf_ext : str
            Wavefunction filename prefix and extension
        populations_filename : str
            Population of each subband [m^-2], one per line
        fermienergy_filename : str
            (index, Fermi energy [meV]) for each subband
        m_d_filename : str
            (z [m], density-of-states mass [kg]) profile
        alphad_filename : str, optional
            (z [m], non-parabolicity [1/J]) profile
        potential_filename : str, optional
            (z [m], band edge [J]) profile; required with *alphad_filename*
        """
        if (alphad_filename is None) != (potential_filename is None):
            raise ValidationError(
                "Non-parabolic subbands need both a non-parabolicity and a potential profile"
            )

        states = State.read_from_file(energy_filename, wf_prefix, wf_ext)
        P = read_table(populations_filename)[-1]
        Ef = read_table(fermienergy_filename)[-1] * meV
        z, m_d_z = read_table(m_d_filename, ncols=2)

        alphad_z = None
        V_z = None
        if alphad_filename is not None:
            alphad_z = read_table(alphad_filename, ncols=2)[1]
            V_z = read_table(potential_filename, ncols=2)[1]

        return cls.from_states(states, Ef, P, z, m_d_z, alphad_z, V_z,
                               source=populations_filename)
