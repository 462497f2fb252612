"""
Exception types shared by the qwellsuite solvers.

The hierarchy derives from the built-in ``ValueError`` so callers that only
care about "bad input" can keep catching that.
"""


class ValidationError(ValueError):
    """Malformed, size-mismatched or out-of-range input data."""


class DomainError(ValueError):
    """A numerical quantity was requested outside its domain of validity."""


class LengthError(DomainError):
    """A sample sequence has too few points, or the wrong parity."""
