"""
Gaussian state space model with an explicit proposal.

The importance sampler only talks to the model through the methods below.
Every method is batched over the first (particle) axis.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional
from numpy.random import Generator

from .gaussian import GaussianDistribution
from ..errors import ConfigurationError


@dataclass
class StateSpaceModel:
    """
    Prior:       x_0 ~ N(m0, P0)
    Process:     x_t ~ N(F x_{t-1}, Q)   or   N(process.mean, Q)
    Measurement: y_t = h(x_t) + w_t,      w_t ~ N(0, R)
    Proposal:    x_t ~ N(mu_t, S),        mu_t = importance_mean(t)

    `process.mean` is the fixed location used when the process density is
    evaluated without a previous state.

    Attributes:
        state_dim: nx
        obs_dim: ny

        prior: N(m0, P0)
        process: N(process mean, Q)
        transition: [nx, nx] matrix F
        measurement: N(0, R)
        importance: N(0, S); shifted to importance_mean(t) at step t

        obs_mean: h, maps [N, nx] -> [N, ny]
        importance_mean: maps step t (1-based) -> [nx]
        n_steps: Last step the proposal is defined for (None = unbounded)
    """
    state_dim: int
    obs_dim: int

    prior: GaussianDistribution
    process: GaussianDistribution
    transition: np.ndarray
    measurement: GaussianDistribution
    importance: GaussianDistribution

    obs_mean: Callable[[np.ndarray], np.ndarray]
    importance_mean: Callable[[int], np.ndarray]

    n_steps: Optional[int] = None

    def __post_init__(self):
        nx, ny = self.state_dim, self.obs_dim
        if nx < 1 or ny < 1:
            raise ConfigurationError(f"Invalid dimensions nx={nx}, ny={ny}")

        for name in ("prior", "process", "importance"):
            dim = getattr(self, name).dim
            if dim != nx:
                raise ConfigurationError(f"{name} distribution has dimension {dim}, expected {nx}")
        if self.measurement.dim != ny:
            raise ConfigurationError(
                f"measurement distribution has dimension {self.measurement.dim}, expected {ny}"
            )

        self.transition = np.asarray(self.transition, dtype=np.float64)
        if self.transition.shape != (nx, nx):
            raise ConfigurationError(
                f"transition has shape {self.transition.shape}, expected ({nx}, {nx})"
            )

    # -------------------------------------------------------------------------
    # Draws
    # -------------------------------------------------------------------------

    def sample_initial(self, n: int, rng: Generator) -> np.ndarray:
        """[n, nx] draws from the state prior."""
        return self.prior.sample(rng, size=n)

    def sample_importance(self, t: int, n: int, rng: Generator) -> np.ndarray:
        """
        Candidates for step t.

        Args:
            t: Step index, 1-based so that candidate t pairs with observation t
            n: Number of candidates
            rng: NumPy random generator

        Returns:
            x: [n, nx]
        """
        return self.importance.sample(rng, size=n, mean=self.importance_mean(t))

    def dynamics_mean(self, x: np.ndarray) -> np.ndarray:
        """F x for a batch [N, nx]."""
        return x @ self.transition.T

    # -------------------------------------------------------------------------
    # Log-densities
    # -------------------------------------------------------------------------

    def observation_log_prob(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        log p(y | x) for each particle.

        h(x) is returned for the whole batch, so no per-particle buffer is
        shared between calls.

        Args:
            x: [N, nx] particles
            y: [ny] observation

        Returns:
            [N]
        """
        return self.measurement.log_prob(y, mean=self.obs_mean(x))

    def dynamics_log_prob(self, x_next: np.ndarray, x: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Process log-density of each particle.

        Args:
            x_next: [N, nx] states at step t
            x: [N, nx] states at step t-1; None evaluates against the fixed
               process location

        Returns:
            [N]
        """
        mean = self.process.mean if x is None else self.dynamics_mean(x)
        return self.process.log_prob(x_next, mean=mean)

    def importance_log_prob(self, x: np.ndarray, t: int) -> np.ndarray:
        """log q_t(x) for candidates [N, nx] drawn at step t."""
        return self.importance.log_prob(x, mean=self.importance_mean(t))

    def __repr__(self) -> str:
        return f"StateSpaceModel(state_dim={self.state_dim}, obs_dim={self.obs_dim}, n_steps={self.n_steps})"
