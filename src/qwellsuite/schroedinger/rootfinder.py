"""
Shooting-method root finder.

Locates the bound-state energies of a one-dimensional boundary-value
problem from a scalar residual ``f(E)`` that vanishes at each eigenvalue.
The energy is stepped upward from the band edge; each sign change brackets
one root, which is then refined with Newton-Raphson (bisection when
Newton misbehaves).

All energies are in joules.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..libqwellsuite.constants import e, meV
from ..libqwellsuite.errors import DomainError, ValidationError
from ..libqwellsuite.logger import get_logger

log = get_logger(__name__)

ResidualFunction = Callable[[float], float]

_MAX_BISECTIONS = 200


@dataclass(frozen=True)
class Bracket:
    """An energy interval known to contain one root of the residual."""
    e_lo: float
    e_hi: float
    y_lo: float
    y_hi: float

    @property
    def width(self) -> float:
        return self.e_hi - self.e_lo

    def contains(self, E: float) -> bool:
        return self.e_lo <= E <= self.e_hi

    def estimate(self) -> float:
        """Linear estimate of the root position inside the bracket."""
        denom = abs(self.y_lo) + abs(self.y_hi)
        if denom == 0.0:
            return 0.5 * (self.e_lo + self.e_hi)
        return self.e_hi - abs(self.y_hi) / denom * self.width


def _evaluate(residual_fn: ResidualFunction, E: float) -> float:
    y = float(residual_fn(E))
    if not np.isfinite(y):
        raise DomainError(f"Residual is not finite at E = {E / meV} meV")
    return y


def _bisect(residual_fn, e_lo, e_hi, y_lo, tolerance):
    for _ in range(_MAX_BISECTIONS):
        if e_hi - e_lo < tolerance:
            break
        E_mid = 0.5 * (e_lo + e_hi)
        y_mid = _evaluate(residual_fn, E_mid)
        if y_mid == 0.0:
            return E_mid
        if np.sign(y_mid) == np.sign(y_lo):
            e_lo, y_lo = E_mid, y_mid
        else:
            e_hi = E_mid
    return 0.5 * (e_lo + e_hi)


def refine_root(residual_fn: ResidualFunction,
                bracket: Bracket,
                delta_E: float,
                tolerance: float,
                max_iterations: int = 100) -> float:
    """
    Refine a bracketed root.

    Starts from the linear estimate inside the bracket and applies
    Newton-Raphson with a centred finite-difference derivative until the
    correction is smaller than *tolerance*.  Falls back to bisection on
    the (narrowed) bracket if a step leaves the bracket, the derivative
    vanishes or the iteration limit is reached.

    Parameters
    ----------
    residual_fn : callable
        f(E) [J -> arbitrary]
    bracket : Bracket
        Interval with a sign change
    delta_E : float
        Finite-difference step for the derivative [J]
    tolerance : float
        Convergence threshold on the Newton correction [J]
    max_iterations : int
        Maximum Newton iterations

    Returns
    -------
    float
        Root energy [J]

    Raises
    ------
    DomainError
        If the residual or its derivative is not finite
    """
    if bracket.y_hi == 0.0:
        return bracket.e_hi
    if bracket.y_lo == 0.0:
        return bracket.e_lo

    e_lo, e_hi, y_lo = bracket.e_lo, bracket.e_hi, bracket.y_lo
    E = bracket.estimate()

    for it in range(max_iterations):
        y = _evaluate(residual_fn, E)
        if y == 0.0:
            return E

        # Keep the bracket as tight as we know it
        if np.sign(y) == np.sign(y_lo):
            e_lo, y_lo = E, y
        else:
            e_hi = E

        dy = (_evaluate(residual_fn, E + delta_E) - _evaluate(residual_fn, E - delta_E)) / (2.0 * delta_E)
        if not np.isfinite(dy):
            raise DomainError(f"Non-finite derivative of residual at E = {E / meV} meV")
        if dy == 0.0:
            log.debug("Zero derivative at E = %g meV; bisecting", E / meV)
            break

        correction = y / dy
        E_new = E - correction
        if not (e_lo <= E_new <= e_hi):
            log.debug("Newton step left bracket at E = %g meV; bisecting", E / meV)
            break

        E = E_new
        if abs(correction) < tolerance:
            log.debug3("Newton converged after %d iterations", it + 1)
            return E
    else:
        log.debug("Newton did not converge in %d iterations; bisecting", max_iterations)

    return _bisect(residual_fn, e_lo, e_hi, y_lo, tolerance)


def find_bound_states(residual_fn: ResidualFunction,
                      energy_lower_bound: float,
                      count_requested: int,
                      energy_cutoff: Optional[float] = None,
                      energy_step: float = meV,
                      energy_scale: float = e,
                      max_iterations: int = 100,
                      max_scan_steps: int = 10**6) -> np.ndarray:
    """
    Find the lowest roots of a residual function.

    Parameters
    ----------
    residual_fn : callable
        f(E), zero at each bound state
    energy_lower_bound : float
        Energy at which the scan starts, usually the band edge [J]
    count_requested : int
        Number of roots to find
    energy_cutoff : float, optional
        Stop scanning above this energy [J]
    energy_step : float
        Scan increment [J]; the derivative step is ``energy_step / 1e6``
    energy_scale : float
        Characteristic energy [J]; roots converge to ``1e-9 * energy_scale``
    max_iterations : int
        Newton iterations per root before bisection takes over
    max_scan_steps : int
        Upper limit on scan increments when no cut-off is given

    Returns
    -------
    ndarray
        Root energies in strictly increasing order [J].  Fewer than
        *count_requested* are returned if the cut-off or step limit is
        reached, or if the residual stops being finite; the shortfall is
        logged.
    """
    if energy_step <= 0.0:
        raise ValidationError(f"Energy step must be positive; got {energy_step}")
    if count_requested <= 0:
        return np.empty(0)

    delta_E = energy_step / 1e6
    tolerance = 1e-9 * energy_scale

    roots = []
    E1 = energy_lower_bound
    try:
        y1 = _evaluate(residual_fn, E1)
    except DomainError as exc:
        log.error("%s; no states found", exc)
        return np.empty(0)

    steps = 0
    while len(roots) < count_requested:
        if steps >= max_scan_steps:
            log.warning("Scan limit of %d steps reached; found %d of %d states",
                        max_scan_steps, len(roots), count_requested)
            break

        E2 = E1 + energy_step
        if energy_cutoff is not None and E2 > energy_cutoff:
            log.warning("Cut-off energy %g meV reached; found %d of %d states",
                        energy_cutoff / meV, len(roots), count_requested)
            break

        steps += 1
        try:
            y2 = _evaluate(residual_fn, E2)
        except DomainError as exc:
            log.error("%s; aborting search after %d states", exc, len(roots))
            break

        if y1 * y2 < 0.0 or y2 == 0.0:
            try:
                E = refine_root(residual_fn, Bracket(E1, E2, y1, y2),
                                delta_E, tolerance, max_iterations)
            except DomainError as exc:
                log.error("%s; aborting search after %d states", exc, len(roots))
                break
            roots.append(E)
            log.info("Found state %d at E = %.6g meV", len(roots), E / meV)

        E1, y1 = E2, y2

    return np.array(roots)
