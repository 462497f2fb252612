"""
Mathematical helper functions.

Numerical integration of sampled functions, table look-up and
interpolation, and a Stehfest inverse Laplace transform.  These are the
building blocks that the eigenstate solvers and scattering-rate integrals
share.

Integration routines follow the dispatcher pattern used across the
package: a public function inspects the dtype of the samples and calls
either a real (``_dp``) or complex (``_dpc``) kernel compiled with Numba.
"""

from typing import Callable, Union

import numpy as np
from numba import jit
from scipy.special import factorial

from .errors import DomainError, LengthError


#######################################################
################ INTERFACE DISPATCHERS ################
#######################################################

def _as_samples(y) -> np.ndarray:
    """Return *y* as a contiguous float64 or complex128 array."""
    y_arr = np.asarray(y)
    if np.iscomplexobj(y_arr):
        return np.ascontiguousarray(y_arr, dtype=np.complex128)
    return np.ascontiguousarray(y_arr, dtype=np.float64)


def integral(y, dx: float) -> Union[float, complex]:
    """
    Compute a numerical integral using a sensible solver.

    If the number of samples is odd, and >= 3, Simpson's rule is used.
    This gives higher precision than the fallback trapezium rule.  The
    method is selected automatically from the number of samples, so it
    should generally be fine to use this function instead of calling
    ``trapz`` or ``simps`` directly.

    Parameters
    ----------
    y : array_like
        Samples of the function to be integrated (real or complex)
    dx : float
        Spatial step between samples

    Returns
    -------
    float or complex
        The integral

    Raises
    ------
    LengthError
        If fewer than two samples are supplied.
    """
    y_arr = _as_samples(y)
    n = y_arr.size

    if n < 2:
        raise LengthError("Need at least two points for numerical integration.")

    if n % 2 == 1 and n >= 3:
        return simps(y_arr, dx)
    return trapz(y_arr, dx)


def simps(y, dx: float) -> Union[float, complex]:
    """
    Integrate using Simpson's rule.

    Parameters
    ----------
    y : array_like
        Samples of the function to be integrated.  The number of samples
        must be odd, and >= 3
    dx : float
        Spatial step between samples

    Returns
    -------
    float or complex
        The integral
    """
    y_arr = _as_samples(y)
    n = y_arr.size

    if n < 3:
        raise LengthError("Not enough points for Simpson's rule")

    if n % 2 == 0:
        raise LengthError(f"Simpson's rule needs odd number of points: {n} received.")

    if np.iscomplexobj(y_arr):
        return complex(simps_dpc(y_arr, float(dx)))
    return float(simps_dp(y_arr, float(dx)))


def trapz(y, dx: float) -> Union[float, complex]:
    """
    Integrate using the trapezium rule.

    Parameters
    ----------
    y : array_like
        Samples of the function to be integrated.  The number of samples
        must be >= 2
    dx : float
        Spatial step between samples

    Returns
    -------
    float or complex
        The integral
    """
    y_arr = _as_samples(y)

    if y_arr.size < 2:
        raise LengthError("Need at least two points for trapezium rule")

    if np.iscomplexobj(y_arr):
        return complex(trapz_dpc(y_arr, float(dx)))
    return float(trapz_dp(y_arr, float(dx)))


#######################################################
################ INTEGRATION KERNELS ##################
#######################################################

@jit(nopython=True, cache=True)
def simps_dp(y: np.ndarray, dx: float) -> float:
    """JIT-compiled Simpson's rule for a real, odd-length array."""
    ans = 0.0
    for i in range(0, y.size - 2, 2):
        ans += y[i] + 4.0 * y[i + 1] + y[i + 2]
    return ans * dx / 3.0


@jit(nopython=True, cache=True)
def simps_dpc(y: np.ndarray, dx: float) -> complex:
    """JIT-compiled Simpson's rule for a complex, odd-length array."""
    ans = 0.0 + 0.0j
    for i in range(0, y.size - 2, 2):
        ans += y[i] + 4.0 * y[i + 1] + y[i + 2]
    return ans * dx / 3.0


@jit(nopython=True, cache=True)
def trapz_dp(y: np.ndarray, dx: float) -> float:
    """JIT-compiled trapezium rule for a real array."""
    ans = 0.0
    for i in range(y.size - 1):
        ans += (y[i] + y[i + 1]) / 2.0
    return ans * dx


@jit(nopython=True, cache=True)
def trapz_dpc(y: np.ndarray, dx: float) -> complex:
    """JIT-compiled trapezium rule for a complex array."""
    ans = 0.0 + 0.0j
    for i in range(y.size - 1):
        ans += (y[i] + y[i + 1]) / 2.0
    return ans * dx


#######################################################
################ INTERPOLATION FUNCTIONS ##############
#######################################################

def lookup_y_from_x(x_values, y_values, x0: float) -> float:
    """
    Look up a y value in a table of the form y=f(x).

    Linear interpolation is used between the two table entries that
    bracket *x0*.

    Parameters
    ----------
    x_values : array_like
        The x values, in ascending order
    y_values : array_like
        The y values corresponding to *x_values*
    x0 : float
        The desired x value for which to find y

    Returns
    -------
    float
        The y-value that corresponds to x0

    Raises
    ------
    DomainError
        If *x0* lies outside the range of *x_values*.
    """
    x = np.asarray(x_values, dtype=np.float64)
    y = np.asarray(y_values, dtype=np.float64)

    if x.size != y.size:
        raise LengthError(f"Table has {x.size} x values but {y.size} y values.")
    if x.size == 0:
        raise LengthError("Cannot look up a value in an empty table.")

    x_min = x.min()
    x_max = x.max()

    if x0 > x_max or x0 < x_min:
        raise DomainError(f"Desired x value: {x0} is out of range ({x_min}, {x_max}).")

    # First index with x[ix] > x0
    ix = int(np.searchsorted(x, x0, side="right"))

    if ix >= x.size:
        return float(y[-1])
    if ix == 0:
        return float(y[0])

    return float(y[ix - 1] + (y[ix] - y[ix - 1]) * (x0 - x[ix - 1]) / (x[ix] - x[ix - 1]))


def lin_interp(y0: float, y1: float, x: float, b: float = 0.0) -> float:
    """
    Interpolate y=f(x) between f(0) and f(1).

    f(x) = (1-x) f(0) + x f(1) + x (1-x) b

    Parameters
    ----------
    y0 : float
        y-value for f(x=0)
    y1 : float
        y-value for f(x=1)
    x : float
        x-value for which to find y=f(x); must lie in [0, 1]
    b : float, optional
        Bowing factor (default 0)

    Returns
    -------
    float
        y = f(x)
    """
    if x < 0 or x > 1:
        raise DomainError(f"x value {x} out of range [0, 1]")

    return y0 * (1.0 - x) + y1 * x + b * x * (1.0 - x)


#######################################################
################ ELEMENTARY FUNCTIONS #################
#######################################################

def cot(x):
    """Cotangent of *x* (radians)."""
    return 1.0 / np.tan(x)


def coth(x):
    """Hyperbolic cotangent of *x*."""
    return 1.0 / np.tanh(x)


def Theta(x: float) -> int:
    """Heaviside step function: 1 for x >= 0, otherwise 0."""
    return 1 if x >= 0 else 0


#######################################################
################ LAPLACE TRANSFORMS ###################
#######################################################

class Laplace:
    """
    Numerical inverse Laplace transform using the Stehfest algorithm.

    The coefficient table is computed once, in the constructor, and is
    owned by the instance.

    Parameters
    ----------
    N : int, optional
        Number of summation terms (must be even, default 20).  More terms
        give a more accurate result, but round-off grows quickly beyond
        about 20 in double precision.

    Notes
    -----
    This only gives decent results if the time-domain representation of
    the function varies smoothly.  Functions that are expected to come out
    as square pulses turn into oscillatory artefacts.
    """

    def __init__(self, N: int = 20):
        if N % 2 != 0:
            raise DomainError("Laplace inversion algorithm must have even number of samples")

        self._N = N
        self._V = self._stehfest_coefficients(N)
        self._V.setflags(write=False)

    @staticmethod
    def _stehfest_coefficients(N: int) -> np.ndarray:
        N2 = N // 2
        V = np.zeros(N)

        for i in range(N):
            kmin = (i + 2) // 2
            kmax = min(i + 1, N2)

            for k in range(kmin, kmax + 1):
                V[i] += (k ** N2 * factorial(2 * k, exact=True)
                         / (factorial(k, exact=True)
                            * factorial(2 * k - i - 1, exact=True)
                            * factorial(N2 - k, exact=True)
                            * factorial(k - 1, exact=True)
                            * factorial(i + 1 - k, exact=True)))

            V[i] *= (-1.0) ** (N2 + i + 1)

        return V

    @property
    def coefficients(self) -> np.ndarray:
        """Read-only Stehfest coefficient table."""
        return self._V

    def inverse_transform(self, F: Callable[[float], float], t: float) -> float:
        """
        Find the inverse Laplace transform of a function at a given time.

        Parameters
        ----------
        F : callable
            A function, F(s), in the Laplace domain
        t : float
            The time at which to evaluate the transform; must be > 0

        Returns
        -------
        float
            The inverse Laplace transform of F(s) evaluated at time t
        """
        if t <= 0.0:
            raise DomainError(
                "Inverse Laplace transform algorithm only works for t > 0. "
                f"Cannot solve at t = {t}"
            )

        ln2t = np.log(2.0) / t
        f_t = 0.0

        for i, Vi in enumerate(self._V):
            f_t += Vi * F(ln2t * (i + 1))

        return ln2t * f_t
