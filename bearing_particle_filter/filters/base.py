"""
Output of a filter run.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass
class FilterResult:
    """
    Per-step arrays of an importance sampling run.

    Row 0 belongs to the prior draw (k = 0), rows 1..T to the observations
    y_1..y_T.

    Attributes:
        means: [T+1, nx] posterior means; row 0 is zero
        weights: [T+1, N] normalized weights; row 0 is 1/N
        ess: [T+1] effective sample size; ess[0] = N

        resampled: [T+1] True where the particles were resampled
        numerical_events: [T+1, 3] counts of log underflow, exp underflow and
            exp overflow substitutions in the weight update
        particles: [T+1, N, nx] particle history, kept on request
    """
    means: np.ndarray
    weights: np.ndarray
    ess: np.ndarray

    resampled: Optional[np.ndarray] = None
    numerical_events: Optional[np.ndarray] = None
    particles: Optional[np.ndarray] = None

    @property
    def T(self) -> int:
        """Number of observations."""
        return self.means.shape[0] - 1

    @property
    def state_dim(self) -> int:
        return self.means.shape[1]

    @property
    def n_particles(self) -> int:
        return self.weights.shape[1]

    def rmse(self, true_states: np.ndarray) -> np.ndarray:
        """
        [T] root mean square error over all state components for k = 1..T.

        Args:
            true_states: [T+1, nx] states including x_0
        """
        err = self.means[1:] - true_states[1:]
        return np.sqrt(np.mean(err ** 2, axis=1))

    def position_rmse(
        self,
        true_states: np.ndarray,
        position_indices: Optional[Sequence[int]] = None,
    ) -> np.ndarray:
        """
        [T] Euclidean distance between posterior mean and true position
        for k = 1..T.

        Args:
            true_states: [T+1, nx] states including x_0
            position_indices: Position columns, default (0, 1)
        """
        idx = [0, 1] if position_indices is None else list(position_indices)
        err = self.means[1:, idx] - true_states[1:, idx]
        return np.linalg.norm(err, axis=1)

    def average_ess(self) -> float:
        """Mean ESS over k = 1..T (N when there are no observations)."""
        if self.T == 0:
            return float(self.n_particles)
        return float(np.mean(self.ess[1:]))

    def total_numerical_events(self) -> int:
        if self.numerical_events is None:
            return 0
        return int(self.numerical_events.sum())
