"""
Tests for mathhelpers: integration, interpolation and the Stehfest
inverse Laplace transform.

Integration is checked against exact results for low-order polynomials,
which Simpson's rule integrates exactly up to cubic order.

Tolerances:
    algebraic  :  rtol=1e-12, atol=1e-12  (float64)
    Laplace    :  rtol=1e-3               (Stehfest, N=20)
"""
import numpy as np
import pytest

from qwellsuite.libqwellsuite.errors import DomainError, LengthError
from qwellsuite.libqwellsuite.mathhelpers import (
    Laplace,
    Theta,
    cot,
    coth,
    integral,
    lin_interp,
    lookup_y_from_x,
    simps,
    trapz,
)

RTOL = 1e-12
ATOL = 1e-12
RNG = np.random.default_rng(0)


# ===================================================================
# Integration
# ===================================================================

class TestSimps:
    def test_constant(self):
        y = np.full(11, 3.0)
        assert np.isclose(simps(y, 0.1), 3.0, rtol=RTOL, atol=ATOL)

    @pytest.mark.parametrize("power", [0, 1, 2, 3])
    def test_polynomial_exact(self, power):
        """Simpson's rule is exact for polynomials up to cubic order."""
        x = np.linspace(0.0, 2.0, 21)
        dx = x[1] - x[0]
        exact = 2.0 ** (power + 1) / (power + 1)
        assert np.isclose(simps(x ** power, dx), exact, rtol=RTOL, atol=ATOL)

    def test_complex_samples(self):
        x = np.linspace(0.0, 1.0, 101)
        y = x ** 2 + 1j * x
        result = simps(y, x[1] - x[0])
        assert np.isclose(result.real, 1.0 / 3.0, rtol=RTOL, atol=ATOL)
        assert np.isclose(result.imag, 0.5, rtol=RTOL, atol=ATOL)

    def test_even_length_raises(self):
        with pytest.raises(LengthError, match="4"):
            simps(np.ones(4), 1.0)

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_too_few_samples(self, n):
        with pytest.raises(LengthError):
            simps(np.ones(n), 1.0)


class TestTrapz:
    def test_linear_exact(self):
        x = np.linspace(-1.0, 3.0, 10)
        assert np.isclose(trapz(2.0 * x + 1.0, x[1] - x[0]), 12.0, rtol=RTOL, atol=ATOL)

    def test_two_points(self):
        assert np.isclose(trapz([1.0, 3.0], 0.5), 1.0, rtol=RTOL, atol=ATOL)

    def test_end_point_weights(self):
        """Interior samples have weight dx, end points dx/2."""
        y = RNG.standard_normal(50)
        expected = 0.2 * (y.sum() - 0.5 * (y[0] + y[-1]))
        np.testing.assert_allclose(trapz(y, 0.2), expected, rtol=1e-10, atol=ATOL)

    def test_complex_samples(self):
        y = np.array([1.0 + 1.0j, 3.0 - 1.0j])
        result = trapz(y, 1.0)
        assert np.isclose(result, 2.0 + 0.0j, rtol=RTOL, atol=ATOL)

    @pytest.mark.parametrize("n", [0, 1])
    def test_too_few_samples(self, n):
        with pytest.raises(LengthError):
            trapz(np.ones(n), 1.0)


class TestIntegral:
    def test_odd_length_uses_simps(self):
        y = RNG.standard_normal(31)
        assert integral(y, 0.1) == simps(y, 0.1)

    def test_even_length_uses_trapz(self):
        y = RNG.standard_normal(30)
        assert integral(y, 0.1) == trapz(y, 0.1)

    def test_two_points_uses_trapz(self):
        y = np.array([2.0, 4.0])
        assert integral(y, 0.5) == trapz(y, 0.5)

    def test_complex_dispatch(self):
        y = RNG.standard_normal(21) + 1j * RNG.standard_normal(21)
        assert integral(y, 0.1) == simps(y, 0.1)

    def test_cubic_exact(self):
        x = np.linspace(-1.0, 1.0, 41)
        y = x ** 3 + x ** 2
        assert np.isclose(integral(y, x[1] - x[0]), 2.0 / 3.0, rtol=RTOL, atol=ATOL)

    @pytest.mark.parametrize("n", [0, 1])
    def test_too_few_samples(self, n):
        with pytest.raises(LengthError):
            integral(np.ones(n), 1.0)

    def test_length_error_is_domain_error(self):
        with pytest.raises(DomainError):
            integral([1.0], 1.0)


# ===================================================================
# Interpolation
# ===================================================================

class TestLookupYFromX:
    x = np.array([0.0, 1.0, 2.0, 4.0])
    y = np.array([1.0, 3.0, 2.0, 6.0])

    def test_minimum(self):
        assert lookup_y_from_x(self.x, self.y, 0.0) == 1.0

    def test_maximum(self):
        assert lookup_y_from_x(self.x, self.y, 4.0) == 6.0

    def test_on_table_entry(self):
        assert np.isclose(lookup_y_from_x(self.x, self.y, 2.0), 2.0, rtol=RTOL, atol=ATOL)

    def test_linear_between_entries(self):
        assert np.isclose(lookup_y_from_x(self.x, self.y, 0.25), 1.5, rtol=RTOL, atol=ATOL)
        assert np.isclose(lookup_y_from_x(self.x, self.y, 3.0), 4.0, rtol=RTOL, atol=ATOL)

    @pytest.mark.parametrize("x0", [-0.1, 4.5])
    def test_out_of_range(self, x0):
        with pytest.raises(DomainError, match="out of range"):
            lookup_y_from_x(self.x, self.y, x0)

    def test_mismatched_table(self):
        with pytest.raises(LengthError):
            lookup_y_from_x([0.0, 1.0], [1.0], 0.5)


class TestLinInterp:
    def test_end_points(self):
        assert lin_interp(2.0, 5.0, 0.0) == 2.0
        assert lin_interp(2.0, 5.0, 1.0) == 5.0

    def test_midpoint_with_bowing(self):
        """f(1/2) = (y0 + y1)/2 + b/4."""
        assert np.isclose(lin_interp(2.0, 5.0, 0.5, b=1.0), 3.75, rtol=RTOL, atol=ATOL)

    @pytest.mark.parametrize("x", [-1e-3, 1.001])
    def test_out_of_range(self, x):
        with pytest.raises(DomainError):
            lin_interp(0.0, 1.0, x)


# ===================================================================
# Elementary functions
# ===================================================================

class TestElementary:
    def test_cot(self):
        x = np.array([0.3, 1.0, 2.0])
        np.testing.assert_allclose(cot(x), np.cos(x) / np.sin(x), rtol=RTOL, atol=ATOL)

    def test_coth(self):
        x = np.array([0.3, 1.0, 2.0])
        np.testing.assert_allclose(coth(x), np.cosh(x) / np.sinh(x), rtol=RTOL, atol=ATOL)

    def test_theta(self):
        assert Theta(-1e-12) == 0
        assert Theta(0.0) == 1
        assert Theta(3.0) == 1


# ===================================================================
# Laplace
# ===================================================================

class TestLaplace:
    def test_unit_step(self):
        """L^-1 {1/s} = 1 for all t, which needs sum V_i / i = 1."""
        lap = Laplace()
        V = lap.coefficients
        i = np.arange(1, V.size + 1)
        assert np.isclose(np.sum(V / i), 1.0, rtol=1e-4)

    def test_coefficients_read_only(self):
        lap = Laplace()
        with pytest.raises(ValueError):
            lap.coefficients[0] = 0.0

    def test_instances_independent(self):
        np.testing.assert_array_equal(Laplace(10).coefficients, Laplace(10).coefficients)
        assert Laplace(10).coefficients.size == 10

    def test_exponential(self):
        """L^-1 {1/(s+1)} = exp(-t)."""
        lap = Laplace()
        for t in [0.5, 1.0, 2.0]:
            assert np.isclose(lap.inverse_transform(lambda s: 1.0 / (s + 1.0), t),
                              np.exp(-t), rtol=1e-3)

    def test_odd_terms(self):
        with pytest.raises(DomainError, match="even"):
            Laplace(7)

    @pytest.mark.parametrize("t", [0.0, -1.0])
    def test_non_positive_time(self, t):
        with pytest.raises(DomainError, match="t > 0"):
            Laplace().inverse_transform(lambda s: 1.0 / s, t)
