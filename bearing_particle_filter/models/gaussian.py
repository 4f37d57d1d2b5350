"""
Multivariate Gaussian parameterized by a mean and a Cholesky factor.

Sampling:     x = m + L z,  z ~ N(0, I)
Log-density:  -0.5 * (n log 2pi + 2 sum(log diag L) + ||L^{-1} (x - m)||^2)

The quadratic form is evaluated with a triangular solve against L, so the
covariance is never inverted explicitly.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
from numpy.random import Generator
from scipy.linalg import solve_triangular

from ..errors import ConfigurationError


_LOG_2PI = np.log(2.0 * np.pi)


def cholesky_factor(cov: np.ndarray, name: str = "covariance") -> np.ndarray:
    """
    Lower Cholesky factor of a covariance matrix.

    Args:
        cov: [n, n] symmetric positive definite matrix
        name: Label used in the error message

    Returns:
        L: [n, n] lower-triangular with L @ L.T = cov

    Raises:
        ConfigurationError: if cov is not square, not finite, or not
            positive definite
    """
    cov = np.asarray(cov, dtype=np.float64)
    if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
        raise ConfigurationError(f"{name} must be square, got shape {cov.shape}")
    if not np.all(np.isfinite(cov)):
        raise ConfigurationError(f"{name} contains non-finite entries")
    if not np.allclose(cov, cov.T, rtol=1e-12, atol=0.0):
        raise ConfigurationError(f"{name} is not symmetric")

    try:
        return np.linalg.cholesky(cov)
    except np.linalg.LinAlgError as err:
        raise ConfigurationError(f"{name} is not positive definite") from err


def sample_gaussian(
    rng: Generator,
    mean: np.ndarray,
    chol: np.ndarray,
    size: Optional[int] = None,
) -> np.ndarray:
    """
    Draw from N(mean, L L^T).

    Args:
        rng: NumPy random generator
        mean: [n] or [N, n] mean(s)
        chol: [n, n] lower Cholesky factor
        size: Number of draws; None draws a single [n] vector
              (or one per row when mean is batched)

    Returns:
        x: [n] or [size, n] samples
    """
    mean = np.asarray(mean, dtype=np.float64)
    n = chol.shape[0]

    if size is None:
        shape = mean.shape if mean.ndim == 2 else (n,)
    else:
        shape = (size, n)

    z = rng.standard_normal(shape)
    return mean + z @ chol.T


def gaussian_log_density(x: np.ndarray, mean: np.ndarray, chol: np.ndarray) -> np.ndarray:
    """
    Log-density of N(mean, L L^T).

    Args:
        x: [n] single point or [N, n] batch
        mean: [n] or [N, n]
        chol: [n, n] lower Cholesky factor

    Returns:
        float for a single point, [N] for a batch
    """
    x = np.asarray(x, dtype=np.float64)
    residual = x - mean
    single = residual.ndim == 1
    if single:
        residual = residual[np.newaxis, :]

    n = chol.shape[0]
    solved = solve_triangular(chol, residual.T, lower=True)  # [n, N]
    mahal_sq = np.sum(solved ** 2, axis=0)
    logdet = 2.0 * np.sum(np.log(np.diag(chol)))

    log_prob = -0.5 * (n * _LOG_2PI + logdet + mahal_sq)

    if single:
        return float(log_prob[0])
    return log_prob


@dataclass(frozen=True)
class GaussianDistribution:
    """
    Gaussian N(mean, chol @ chol.T).

    Attributes:
        mean: [n] location
        chol: [n, n] lower Cholesky factor of the covariance
    """
    mean: np.ndarray
    chol: np.ndarray

    @classmethod
    def from_covariance(cls, mean, cov, name: str = "covariance") -> "GaussianDistribution":
        mean = np.asarray(mean, dtype=np.float64)
        chol = cholesky_factor(cov, name)
        if mean.shape != (chol.shape[0],):
            raise ConfigurationError(
                f"{name}: mean has shape {mean.shape}, expected ({chol.shape[0]},)"
            )
        return cls(mean=mean, chol=chol)

    @property
    def dim(self) -> int:
        return self.chol.shape[0]

    @property
    def covariance(self) -> np.ndarray:
        return self.chol @ self.chol.T

    def sample(self, rng: Generator, size: Optional[int] = None, mean=None) -> np.ndarray:
        """Sample; `mean` overrides the stored location (e.g. per-particle)."""
        loc = self.mean if mean is None else mean
        return sample_gaussian(rng, loc, self.chol, size)

    def log_prob(self, x: np.ndarray, mean=None) -> np.ndarray:
        """Log-density; `mean` overrides the stored location."""
        loc = self.mean if mean is None else mean
        return gaussian_log_density(x, loc, self.chol)
