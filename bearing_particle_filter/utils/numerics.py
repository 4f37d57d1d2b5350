"""
Clamped log/exp arithmetic for importance weights.

Small weights underflow both in log (when the previous weight is zero or
denormal) and in exp (when the folded log-weight is very negative). Rather
than toggling a global error handler, every evaluation returns its value
together with a per-element status, and the caller decides what to do with
the status. The substitution policy is:

    log(w),   w < DBL_MIN          -> LOG_DBL_MIN      (UNDERFLOW)
    exp(a),   a < LOG_DBL_MIN      -> DBL_MIN          (UNDERFLOW)
    exp(a),   a > LOG_DBL_MAX      -> DBL_MAX          (OVERFLOW)

DBL_MIN is the smallest positive *normal* double, so a clamped weight never
becomes a hard zero.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from ..errors import NumericalError

logger = logging.getLogger(__name__)

DBL_MIN = float(np.finfo(np.float64).tiny)
DBL_MAX = float(np.finfo(np.float64).max)
LOG_DBL_MIN = float(np.log(DBL_MIN))
LOG_DBL_MAX = float(np.log(DBL_MAX))


class NumericStatus(IntEnum):
    """Outcome of a single clamped log/exp evaluation."""
    OK = 0
    UNDERFLOW = 1
    OVERFLOW = 2


@dataclass(frozen=True)
class StableResult:
    """
    Value of a clamped evaluation.

    Attributes:
        value: [N] evaluated (possibly substituted) values
        status: [N] NumericStatus codes, one per element
    """
    value: np.ndarray
    status: np.ndarray

    @property
    def n_underflow(self) -> int:
        return int(np.count_nonzero(self.status == NumericStatus.UNDERFLOW))

    @property
    def n_overflow(self) -> int:
        return int(np.count_nonzero(self.status == NumericStatus.OVERFLOW))

    @property
    def ok(self) -> bool:
        return bool(np.all(self.status == NumericStatus.OK))


def stable_log(x: np.ndarray) -> StableResult:
    """
    Natural log of non-negative weights with underflow substitution.

    Args:
        x: [N] weights (>= 0)

    Returns:
        StableResult with log values; entries below DBL_MIN (zero or
        denormal) are replaced by LOG_DBL_MIN and flagged UNDERFLOW.
    """
    x = np.atleast_1d(np.asarray(x, dtype=np.float64))
    if np.any(np.isnan(x)) or np.any(x < 0):
        raise NumericalError("log of a negative or NaN weight")

    underflow = x < DBL_MIN
    status = np.where(underflow, NumericStatus.UNDERFLOW, NumericStatus.OK).astype(np.int8)

    with np.errstate(divide="ignore"):
        value = np.where(underflow, LOG_DBL_MIN, np.log(np.where(underflow, 1.0, x)))

    return StableResult(value=value, status=status)


def stable_exp(a: np.ndarray) -> StableResult:
    """
    Exponential of log-weights with underflow/overflow substitution.

    Args:
        a: [N] log-weights

    Returns:
        StableResult; arguments below LOG_DBL_MIN give DBL_MIN (UNDERFLOW),
        arguments above LOG_DBL_MAX give DBL_MAX (OVERFLOW).
    """
    a = np.atleast_1d(np.asarray(a, dtype=np.float64))
    if np.any(np.isnan(a)):
        raise NumericalError("exp of a NaN log-weight")

    underflow = a < LOG_DBL_MIN
    overflow = a > LOG_DBL_MAX

    status = np.full(a.shape, NumericStatus.OK, dtype=np.int8)
    status[underflow] = NumericStatus.UNDERFLOW
    status[overflow] = NumericStatus.OVERFLOW

    # Clip first so np.exp itself never over/underflows
    value = np.exp(np.clip(a, LOG_DBL_MIN, LOG_DBL_MAX))
    value[underflow] = DBL_MIN
    value[overflow] = DBL_MAX

    return StableResult(value=value, status=status)


@dataclass(frozen=True)
class WeightUpdate:
    """
    Result of folding log-density increments into the previous weights.

    Attributes:
        weights: [N] new unnormalized weights, always finite and > 0
        log_status: [N] status of log(previous weight)
        exp_status: [N] status of exp(new log-weight)
    """
    weights: np.ndarray
    log_status: np.ndarray
    exp_status: np.ndarray

    def event_counts(self) -> np.ndarray:
        """[3] counts: log underflow, exp underflow, exp overflow."""
        return np.array([
            np.count_nonzero(self.log_status == NumericStatus.UNDERFLOW),
            np.count_nonzero(self.exp_status == NumericStatus.UNDERFLOW),
            np.count_nonzero(self.exp_status == NumericStatus.OVERFLOW),
        ], dtype=int)


def update_weights(prev_weights: np.ndarray, log_increment: np.ndarray) -> WeightUpdate:
    """
    w_new = exp(log(w_prev) + log_increment), with the clamp policy applied
    to both the log and the exp.

    Args:
        prev_weights: [N] weights from the previous step
        log_increment: [N] log p(y|x) + log p(x) - log q(x)

    Returns:
        WeightUpdate
    """
    log_prev = stable_log(prev_weights)
    new = stable_exp(log_prev.value + np.asarray(log_increment, dtype=np.float64))

    if not (log_prev.ok and new.ok):
        logger.debug(
            "Clamped weight update: %d log underflow, %d exp underflow, %d exp overflow",
            log_prev.n_underflow, new.n_underflow, new.n_overflow,
        )

    return WeightUpdate(
        weights=new.value,
        log_status=log_prev.status,
        exp_status=new.status,
    )


def normalize_weights(weights: np.ndarray) -> np.ndarray:
    """
    Normalize positive weights to sum to one.

    Scales by the maximum first so that several DBL_MAX entries cannot
    overflow the sum.

    Args:
        weights: [N] positive, finite weights

    Returns:
        [N] normalized weights
    """
    weights = np.asarray(weights, dtype=np.float64)
    scaled = weights / np.max(weights)
    return scaled / np.sum(scaled)
