"""
Sequential Importance Sampling particle filter.

Candidates are drawn from the model's importance distribution and the
weights are corrected by the importance ratio:

    w_t^i  ∝  w_{t-1}^i * p(y_t | x_t^i) p(x_t^i | ...) / q_t(x_t^i)

The update is carried out in the log domain with the clamp policy from
utils.numerics. Resampling is an optional strategy invoked after the ESS
computation; by default every particle is kept.
"""

import logging
import warnings
import numpy as np
from typing import Optional, Literal
from numpy.random import Generator, default_rng

from .base import FilterResult
from ..errors import ConfigurationError
from ..models.base import StateSpaceModel
from ..utils.numerics import update_weights, normalize_weights
from ..utils.resampling import get_resampler, effective_sample_size, no_resample

logger = logging.getLogger(__name__)


class SequentialImportanceSampler:
    """
    Sequential Importance Sampling with an explicit proposal distribution.

    Transition handling:
        "none":    the process density is evaluated at its fixed location and
                   the previous particle state is not used (default).
        "predict": the process density is p(x_t | x_{t-1}) = N(F x_{t-1}, Q).
    """

    def __init__(
        self,
        n_particles: int = 100,
        transition: Literal["none", "predict"] = "none",
        resample_method="none",
        resample_criterion: Literal["always", "ess", "never"] = "ess",
        ess_threshold: float = 0.5,
        seed: Optional[int] = None,
    ):
        """
        Args:
            n_particles: Number of particles
            transition: How the process density is evaluated ("none", "predict")
            resample_method: Registered resampler name or callable;
                "none" keeps all particles
            resample_criterion: When to resample ("always", "ess", "never")
            ess_threshold: ESS threshold as fraction of N (for "ess" criterion)
            seed: Random seed
        """
        if int(n_particles) != n_particles or n_particles < 1:
            raise ConfigurationError(f"n_particles must be a positive integer, got {n_particles}")
        if transition not in ("none", "predict"):
            raise ValueError(f"Unknown transition mode: {transition}")
        if resample_criterion not in ("always", "ess", "never"):
            raise ValueError(f"Unknown resample criterion: {resample_criterion}")
        if not 0.0 <= ess_threshold <= 1.0:
            raise ValueError(f"ess_threshold must be in [0, 1], got {ess_threshold}")

        self.n_particles = int(n_particles)
        self.transition = transition
        self.resample_method = resample_method
        self.resample_criterion = resample_criterion
        self.ess_threshold = ess_threshold
        self.seed = seed

        self._resample_fn = get_resampler(resample_method)

    def _check_inputs(self, model: StateSpaceModel, observations: np.ndarray) -> np.ndarray:
        observations = np.asarray(observations, dtype=np.float64)
        if observations.ndim != 2 or observations.shape[1] != model.obs_dim:
            raise ConfigurationError(
                f"observations must have shape [T, {model.obs_dim}], got {observations.shape}"
            )
        if model.n_steps is not None and observations.shape[0] > model.n_steps:
            raise ConfigurationError(
                f"{observations.shape[0]} observations but the proposal covers "
                f"only {model.n_steps} steps"
            )
        if not np.all(np.isfinite(observations)):
            raise ConfigurationError("observations contain non-finite entries")
        return observations

    def filter(
        self,
        model: StateSpaceModel,
        observations: np.ndarray,
        return_particles: bool = False,
        rng: Optional[Generator] = None,
    ) -> FilterResult:
        """
        Run the importance sampler.

        Args:
            model: StateSpaceModel with an importance distribution
            observations: [T, ny] Observations (y_1, ..., y_T)
            return_particles: If True, keep the particle history. Row t holds
                the candidates in the order of weights[t], before any
                resampling at step t.
            rng: Optional random generator (uses self.seed if None)

        Returns:
            FilterResult with means [T+1, nx], weights [T+1, N], ess [T+1]
        """
        observations = self._check_inputs(model, observations)
        if rng is None:
            rng = default_rng(self.seed)

        T = observations.shape[0]
        N = self.n_particles
        nx = model.state_dim

        # Storage
        particles = np.zeros((T + 1, N, nx))
        means = np.zeros((T + 1, nx))
        weights = np.zeros((T + 1, N))
        ess = np.zeros(T + 1)
        resampled = np.zeros(T + 1, dtype=bool)
        numerical_events = np.zeros((T + 1, 3), dtype=int)

        # k = 0: prior draw, uniform weights
        particles[0] = model.sample_initial(N, rng)
        weights[0] = np.full(N, 1.0 / N)
        ess[0] = N
        carried = weights[0]
        previous = particles[0]

        for t in range(1, T + 1):
            y = observations[t - 1]

            # Propose
            x_t = model.sample_importance(t, N, rng)

            # Log-densities
            log_meas = model.observation_log_prob(x_t, y)
            if self.transition == "predict":
                log_proc = model.dynamics_log_prob(x_t, previous)
            else:
                log_proc = model.dynamics_log_prob(x_t)
            log_imp = model.importance_log_prob(x_t, t)

            # Fold into the running weight with the clamp policy
            update = update_weights(carried, log_meas + log_proc - log_imp)
            numerical_events[t] = update.event_counts()

            particles[t] = x_t
            weights[t] = normalize_weights(update.weights)

            ess[t] = effective_sample_size(weights[t])
            means[t] = weights[t] @ x_t
            carried = weights[t]
            previous = x_t

            logger.debug("step %d: ESS %.2f, clamps %s", t, ess[t], numerical_events[t].tolist())

            if self._should_resample(ess[t], N):
                indices = self._resample_fn(weights[t], rng)
                if not np.array_equal(indices, np.arange(N)):
                    previous = x_t[indices]
                    carried = np.full(N, 1.0 / N)
                    resampled[t] = True

        if T > 0 and ess[T] < 0.01 * N and self._resample_fn is no_resample:
            warnings.warn(
                f"Final ESS {ess[T]:.2f} is below 1% of {N} particles; "
                "weights have degenerated.",
                RuntimeWarning,
            )

        result = FilterResult(
            means=means,
            weights=weights,
            ess=ess,
            resampled=resampled,
            numerical_events=numerical_events,
        )
        if return_particles:
            result.particles = particles

        return result

    def _should_resample(self, ess: float, N: int) -> bool:
        """Determine if resampling should occur."""
        if self._resample_fn is no_resample:
            return False
        if self.resample_criterion == "always":
            return True
        elif self.resample_criterion == "never":
            return False
        elif self.resample_criterion == "ess":
            return ess < self.ess_threshold * N
        else:
            raise ValueError(f"Unknown resample criterion: {self.resample_criterion}")
