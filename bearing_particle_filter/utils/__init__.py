"""
Utility functions.
"""

from .resampling import (
    RESAMPLERS,
    get_resampler,
    no_resample,
    systematic_resample,
    stratified_resample,
    multinomial_resample,
    residual_resample,
    effective_sample_size,
)

from .numerics import (
    DBL_MIN,
    DBL_MAX,
    LOG_DBL_MIN,
    LOG_DBL_MAX,
    NumericStatus,
    StableResult,
    WeightUpdate,
    stable_log,
    stable_exp,
    update_weights,
    normalize_weights,
)

__all__ = [
    "RESAMPLERS",
    "get_resampler",
    "no_resample",
    "systematic_resample",
    "stratified_resample",
    "multinomial_resample",
    "residual_resample",
    "effective_sample_size",
    "DBL_MIN",
    "DBL_MAX",
    "LOG_DBL_MIN",
    "LOG_DBL_MAX",
    "NumericStatus",
    "StableResult",
    "WeightUpdate",
    "stable_log",
    "stable_exp",
    "update_weights",
    "normalize_weights",
]
