"""
Tests for alloy-disorder scattering rates.

With a uniform alloy fraction x the rate reduces to

    W = m Omega Vad^2 / hBar^3  x (1 - x)  int psi_i^2 psi_f^2 dz

and, for a population consistent with its Fermi energy, the
distribution-averaged rate without blocking equals W.
"""
import logging

import numpy as np
import pytest

from qwellsuite.core.state import State
from qwellsuite.core.subband import Subband
from qwellsuite.libqwellsuite.constants import angstrom, hBar, kB, me, meV, pi
from qwellsuite.libqwellsuite.errors import DomainError, ValidationError
from qwellsuite.libqwellsuite.mathhelpers import integral
from qwellsuite.scattering.alloydisorder import (
    alloy_disorder_rates,
    read_transitions,
    write_rates,
)

M = 0.067 * me
L = 300 * angstrom
T = 77.0
VAD = 600.0 * meV
OMEGA = (5.65 * angstrom) ** 3 / 4.0

Z = np.linspace(0.0, L, 301)
X = np.full(Z.size, 0.1)


def _state(n, E):
    return State(E, Z, np.sin(n * pi * Z / L)).normalised()


def _population(E, Ef):
    return M * kB * T / (pi * hBar ** 2) * np.log1p(np.exp((Ef - E) / (kB * T)))


def _subbands(N2=None):
    E1, E2 = 10.0 * meV, 40.0 * meV
    N1 = _population(E1, E1)
    if N2 is None:
        N2 = _population(E2, E1)
    return [Subband(_state(1, E1), E1, N1, M, Z),
            Subband(_state(2, E2), E1, N2, M, Z)]


def _overlap_rate(sb_i, sb_f, x=0.1):
    psi2 = sb_i.psi_array() ** 2 * sb_f.psi_array() ** 2
    return M * OMEGA * VAD ** 2 / hBar ** 3 * x * (1.0 - x) * integral(psi2, Z[1] - Z[0])


class TestRates:
    def test_rate_without_blocking(self):
        sbs = _subbands()
        (rate,) = alloy_disorder_rates(sbs, [(2, 1)], Z, X, m=M, T=T, blocking=False)
        np.testing.assert_allclose(rate.Wif, _overlap_rate(sbs[1], sbs[0]), rtol=1e-12)
        assert rate.i == 2 and rate.f == 1

    def test_blocking_reduces_rate(self):
        sbs = _subbands()
        (free,) = alloy_disorder_rates(sbs, [(1, 1)], Z, X, m=M, T=T, blocking=False)
        (blocked,) = alloy_disorder_rates(sbs, [(1, 1)], Z, X, m=M, T=T, blocking=True)
        assert np.all(blocked.Wif < free.Wif)
        # Half the final states are full at the Fermi energy
        assert np.isclose(blocked.Wif[0], 0.5 * free.Wif[0], rtol=1e-12)

    def test_no_alloy_no_scattering(self):
        sbs = _subbands()
        (rate,) = alloy_disorder_rates(sbs, [(2, 1)], Z, np.zeros(Z.size), m=M, T=T)
        np.testing.assert_array_equal(rate.Wif, 0.0)
        assert rate.Wbar == 0.0

    def test_mean_rate_equals_constant_rate(self):
        sbs = _subbands()
        (rate,) = alloy_disorder_rates(sbs, [(1, 1)], Z, X, m=M, T=T,
                                       E_cutoff=20.0 * kB * T, nki=801, blocking=False)
        assert np.isclose(rate.Wbar, rate.Wif[0], rtol=1e-3)

    def test_downward_starts_at_band_edge(self):
        sbs = _subbands()
        (rate,) = alloy_disorder_rates(sbs, [(2, 1)], Z, X, m=M, T=T)
        assert np.isclose(rate.E_total[0], sbs[1].get_E(), rtol=1e-12)
        assert np.all(np.diff(rate.E_total) > 0.0)

    def test_upward_starts_at_threshold(self):
        sbs = _subbands()
        (rate,) = alloy_disorder_rates(sbs, [(1, 2)], Z, X, m=M, T=T)
        assert np.isclose(rate.E_total[0], sbs[1].get_E(), rtol=1e-9)

    def test_cutoff_extended(self, caplog):
        sbs = _subbands()
        with caplog.at_level(logging.WARNING, logger="qwellsuite"):
            (rate,) = alloy_disorder_rates(sbs, [(1, 2)], Z, X, m=M, T=T,
                                           E_cutoff=5.0 * meV)
        assert "extending range" in caplog.text
        Efi = sbs[1].get_E() - sbs[0].get_E()
        assert np.isclose(rate.E_total[-1], sbs[0].get_E() + 5.0 * meV + Efi, rtol=1e-9)

    def test_several_transitions(self):
        sbs = _subbands()
        rates = alloy_disorder_rates(sbs, [(1, 1), (1, 2), (2, 1), (2, 2)], Z, X, m=M, T=T)
        assert [(r.i, r.f) for r in rates] == [(1, 1), (1, 2), (2, 1), (2, 2)]
        assert all(r.E_total.size == 101 for r in rates)


class TestErrors:
    def test_empty_initial_subband(self):
        sbs = _subbands(N2=0.0)
        with pytest.raises(DomainError, match="empty"):
            alloy_disorder_rates(sbs, [(2, 1)], Z, X, m=M, T=T)

    def test_missing_subband(self):
        with pytest.raises(ValidationError, match="missing subband"):
            alloy_disorder_rates(_subbands(), [(1, 3)], Z, X, m=M, T=T)

    def test_profile_mismatch(self):
        with pytest.raises(ValidationError, match="Alloy profile"):
            alloy_disorder_rates(_subbands(), [(1, 1)], Z, X[:-1], m=M, T=T)

    def test_too_few_samples(self):
        with pytest.raises(ValidationError, match="wave-vector samples"):
            alloy_disorder_rates(_subbands(), [(1, 1)], Z, X, nki=1)


class TestFiles:
    def test_read_transitions(self, tmp_path):
        fn = tmp_path / "rrp.r"
        fn.write_text("2 1\n1 1\n")
        assert read_transitions(str(fn)) == [(2, 1), (1, 1)]

    def test_write_rates(self, tmp_path):
        rates = alloy_disorder_rates(_subbands(), [(2, 1), (1, 1)], Z, X, m=M, T=T)
        write_rates(rates, prefix=str(tmp_path / "ado"),
                    avg_filename=str(tmp_path / "ado-avg.dat"))

        E, W = np.loadtxt(tmp_path / "ado21.r", unpack=True)
        np.testing.assert_allclose(E, rates[0].E_total / meV, rtol=1e-12)
        np.testing.assert_allclose(W, rates[0].Wif, rtol=1e-12)

        i, f, Wbar = np.loadtxt(tmp_path / "ado-avg.dat", unpack=True)
        np.testing.assert_array_equal(i, [2, 1])
        np.testing.assert_array_equal(f, [1, 1])
        np.testing.assert_allclose(Wbar, [r.Wbar for r in rates], rtol=1e-12)
