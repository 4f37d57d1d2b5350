"""
State space model definitions.
"""

from .base import StateSpaceModel
from .gaussian import (
    GaussianDistribution,
    cholesky_factor,
    sample_gaussian,
    gaussian_log_density,
)
from .bearing_only import (
    BearingOnlyConfig,
    bearings,
    constant_velocity_covariance,
    constant_velocity_transition,
    make_bearing_only_ssm,
)
from .triangulation import triangulate

__all__ = [
    "StateSpaceModel",
    "GaussianDistribution",
    "cholesky_factor",
    "sample_gaussian",
    "gaussian_log_density",
    "BearingOnlyConfig",
    "bearings",
    "constant_velocity_covariance",
    "constant_velocity_transition",
    "make_bearing_only_ssm",
    "triangulate",
]
