"""
Tests for Subband: dispersion, carrier statistics and bulk construction.

Physics checks:
    parabolic limit  Ek = hBar^2 k^2 / (2m),  k(Ek(k)) = k
    density of states  rho = m / (pi hBar^2)
    Fermi-Dirac  f(Ef) = 1/2
"""
import numpy as np
import pytest

from qwellsuite.core.state import State
from qwellsuite.core.subband import Subband
from qwellsuite.libqwellsuite.constants import e, hBar, kB, me, meV, pi
from qwellsuite.libqwellsuite.errors import DomainError, ValidationError

RTOL = 1e-12
ATOL = 1e-12

M = 0.067 * me


def _state(E=20.0 * meV, n=101):
    z = np.linspace(0.0, 300e-10, n)
    psi = np.exp(-((z - 150e-10) / 30e-10) ** 2)
    return State(E, z, psi).normalised()


def _subband(E=20.0 * meV, Ef=25.0 * meV, N=1e15, alphad=0.0, Vc=0.0):
    st = _state(E)
    return Subband(st, Ef, N, M, st.z, alphad, Vc)


# ===================================================================
# Dispersion
# ===================================================================

class TestParabolic:
    @pytest.mark.parametrize("k", np.linspace(0.0, 1e9, 11))
    def test_Ek(self, k):
        sb = _subband()
        assert np.isclose(sb.Ek(k), (hBar * k) ** 2 / (2.0 * M), rtol=RTOL, atol=0.0)

    @pytest.mark.parametrize("k", [1e6, 1e7, 3e8, 1e9])
    def test_k_of_Ek(self, k):
        sb = _subband()
        assert np.isclose(sb.k(sb.Ek(k)), k, rtol=1e-10)

    def test_small_k_is_zero(self):
        assert _subband().Ek(1e-10) == 0.0

    def test_small_energy_is_zero(self):
        assert _subband().k(1e-12 * e) == 0.0

    def test_negative_energy(self):
        with pytest.raises(DomainError, match="negative kinetic energy"):
            _subband().k(-1.0 * meV)

    def test_E_total(self):
        sb = _subband(E=20.0 * meV)
        k = 2e8
        assert np.isclose(sb.E_total(k), 20.0 * meV + sb.Ek(k), rtol=RTOL)


class TestNonParabolic:
    alphad = 0.7 / e  # [1/J]

    def test_reduces_energy(self):
        sb_p = _subband()
        sb_np = _subband(alphad=self.alphad)
        k = 5e8
        assert sb_np.Ek(k) < sb_p.Ek(k)

    def test_dispersion_relation(self):
        """Ek (1 + alphad (E - Vc) + alphad Ek) = hBar^2 k^2 / (2m)."""
        sb = _subband(alphad=self.alphad, Vc=5.0 * meV)
        k = 6e8
        Ek = sb.Ek(k)
        lhs = Ek * (1.0 + self.alphad * (sb.get_E() - 5.0 * meV) + self.alphad * Ek)
        assert np.isclose(lhs, (hBar * k) ** 2 / (2.0 * M), rtol=1e-10)

    @pytest.mark.parametrize("k", [1e7, 2e8, 8e8])
    def test_k_of_Ek(self, k):
        sb = _subband(alphad=self.alphad)
        assert np.isclose(sb.k(sb.Ek(k)), k, rtol=1e-9)

    def test_no_real_solution(self):
        """Negative non-parabolicity makes the discriminant negative at large k."""
        sb = _subband(alphad=-1.0 / e)
        with pytest.raises(DomainError, match="No real energy solution"):
            sb.Ek(5e9)

    def test_negative_energy(self):
        """b < 0 with alphad < 0 gives only negative roots."""
        sb = _subband(E=2000.0 * meV, alphad=-1.0 / e)
        with pytest.raises(DomainError, match="Negative energy"):
            sb.Ek(1e7)

    def test_mass_increases_with_energy(self):
        sb = _subband(alphad=self.alphad)
        assert sb.get_m_d(10.0 * meV) > sb.get_m_d(0.0) > sb.get_md_0()


# ===================================================================
# Statistics
# ===================================================================

class TestStatistics:
    def test_rho_parabolic(self):
        assert np.isclose(_subband().rho(), M / (pi * hBar ** 2), rtol=RTOL)

    def test_fermi_dirac_at_fermi_level(self):
        sb = _subband(Ef=25.0 * meV)
        assert np.isclose(sb.f_FD(25.0 * meV, 300.0), 0.5, rtol=RTOL)

    def test_fermi_dirac_formula(self):
        sb = _subband(Ef=25.0 * meV)
        E = 40.0 * meV
        T = 77.0
        expected = 1.0 / (np.exp((E - 25.0 * meV) / (kB * T)) + 1.0)
        assert np.isclose(sb.f_FD(E, T), expected, rtol=1e-12)

    def test_fermi_dirac_no_overflow(self):
        sb = _subband(Ef=0.0)
        assert sb.f_FD(1.0 * e, 1.0) == 0.0
        assert sb.f_FD(-1.0 * e, 1.0) == 1.0

    def test_k_fermi(self):
        sb = _subband(N=1e15)
        assert np.isclose(sb.get_k_fermi(), np.sqrt(2.0 * pi * 1e15), rtol=RTOL)

    def test_k_max(self):
        sb = _subband(E=20.0 * meV, Ef=25.0 * meV)
        T = 300.0
        expected = sb.k(5.0 * meV + 5.0 * kB * T)
        assert np.isclose(sb.get_k_max(T), expected, rtol=RTOL)

    def test_with_distribution(self):
        sb = _subband(Ef=25.0 * meV, N=1e15)
        sb2 = sb.with_distribution(30.0 * meV, 2e15)
        assert sb2.get_Ef() == 30.0 * meV
        assert sb2.get_pop() == 2e15
        assert sb.get_pop() == 1e15

    def test_negative_population(self):
        with pytest.raises(ValidationError, match="non-negative"):
            _subband(N=-1.0)


# ===================================================================
# Bulk construction
# ===================================================================

class TestFromStates:
    def _inputs(self, nst=2):
        states = [_state((ist + 1) * 20.0 * meV) for ist in range(nst)]
        z = states[0].z
        return states, z, np.full(z.size, M)

    def test_builds_subbands(self):
        states, z, m_d = self._inputs()
        sbs = Subband.from_states(states, [25.0 * meV, 45.0 * meV], [1e15, 2e14], z, m_d)
        assert len(sbs) == 2
        assert sbs[1].get_E() == states[1].E
        assert sbs[1].get_pop() == 2e14
        assert sbs[0].get_md_0() == M

    def test_samples_profiles_at_peak(self):
        states, z, _ = self._inputs(1)
        m_d = np.linspace(0.05, 0.09, z.size) * me
        alphad = np.full(z.size, 0.5 / e)
        V = np.zeros(z.size)
        (sb,) = Subband.from_states(states, [0.0], [1e15], z, m_d, alphad, V)
        assert sb.get_md_0() == m_d[states[0].max_index()]
        assert sb.alphad == 0.5 / e

    def test_count_mismatch_lists_counts(self):
        states, z, m_d = self._inputs(3)
        with pytest.raises(ValidationError, match="Expected 3 lines"):
            Subband.from_states(states, [0.0, 0.0, 0.0], [1e15, 1e15], z, m_d)

    def test_negative_population_before_energy_work(self):
        """Population is checked before the (bad) mass profile is touched."""
        states, z, _ = self._inputs(2)
        bad_mass = np.full(3, M)
        with pytest.raises(ValidationError, match="Negative population"):
            Subband.from_states(states, [0.0, 0.0], [1e15, -5.0], z, bad_mass)

    def test_profile_size_mismatch(self):
        states, z, _ = self._inputs(1)
        with pytest.raises(ValidationError, match="mass profile"):
            Subband.from_states(states, [0.0], [1e15], z, np.full(5, M))


class TestReadFromFile:
    def test_read(self, tmp_path):
        states = [_state(20.0 * meV), _state(60.0 * meV)]
        State.write_to_file(str(tmp_path / "Ee.r"), str(tmp_path / "wf_e"), ".r", states)
        np.savetxt(tmp_path / "N.r", [1e15, 1e14])
        np.savetxt(tmp_path / "Ef.r", np.column_stack([[1, 2], [30.0, 65.0]]))
        z = states[0].z
        np.savetxt(tmp_path / "m.r", np.column_stack([z, np.full(z.size, M)]))

        sbs = Subband.read_from_file(str(tmp_path / "Ee.r"), str(tmp_path / "wf_e"), ".r",
                                     str(tmp_path / "N.r"), str(tmp_path / "Ef.r"),
                                     str(tmp_path / "m.r"))
        assert len(sbs) == 2
        assert np.isclose(sbs[1].get_Ef(), 65.0 * meV, rtol=RTOL)
        assert np.isclose(sbs[0].get_pop(), 1e15, rtol=RTOL)

    def test_population_count_mismatch(self, tmp_path):
        states = [_state(20.0 * meV), _state(60.0 * meV)]
        State.write_to_file(str(tmp_path / "Ee.r"), str(tmp_path / "wf_e"), ".r", states)
        np.savetxt(tmp_path / "N.r", [1e15])
        np.savetxt(tmp_path / "Ef.r", np.column_stack([[1, 2], [30.0, 65.0]]))
        z = states[0].z
        np.savetxt(tmp_path / "m.r", np.column_stack([z, np.full(z.size, M)]))

        with pytest.raises(ValidationError, match="Expected 2 lines"):
            Subband.read_from_file(str(tmp_path / "Ee.r"), str(tmp_path / "wf_e"), ".r",
                                   str(tmp_path / "N.r"), str(tmp_path / "Ef.r"),
                                   str(tmp_path / "m.r"))

    def test_alphad_needs_potential(self, tmp_path):
        with pytest.raises(ValidationError, match="both"):
            Subband.read_from_file("E.r", "wf", ".r", "N.r", "Ef.r", "m.r",
                                   alphad_filename="a.r")
