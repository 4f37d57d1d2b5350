"""
Exception hierarchy.

Configuration problems are detected before the recursion starts and are
always fatal. Numerical faults inside the recursion that the clamp policy
cannot absorb (NaN log-weights) are fatal as well.
"""


class FilterError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(FilterError, ValueError):
    """Invalid dimensions, particle count or non-positive-definite covariance."""


class NumericalError(FilterError, FloatingPointError):
    """Unrecoverable numerical fault during the weight update."""
