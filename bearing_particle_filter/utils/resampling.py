"""
Resampling strategies.

A strategy maps normalized weights to ancestor indices:

    resample(weights: [N], rng) -> indices: [N]

The importance sampler defaults to "none", which keeps every particle.
"""

import numpy as np
from typing import Callable
from numpy.random import Generator


Resampler = Callable[[np.ndarray, Generator], np.ndarray]


def _inverse_cdf(weights: np.ndarray, u: np.ndarray) -> np.ndarray:
    """Indices i with cdf[i-1] < u <= cdf[i] for sorted points u in [0, 1)."""
    cdf = np.cumsum(weights)
    cdf[-1] = 1.0
    return np.minimum(np.searchsorted(cdf, u), len(weights) - 1)


def no_resample(weights: np.ndarray, rng: Generator) -> np.ndarray:
    """Identity; the generator is not advanced."""
    return np.arange(len(weights))


def systematic_resample(weights: np.ndarray, rng: Generator) -> np.ndarray:
    """
    One uniform offset shared by N evenly spaced points.

    Args:
        weights: [N] normalized weights
        rng: NumPy random generator

    Returns:
        indices: [N]
    """
    N = len(weights)
    return _inverse_cdf(weights, (rng.uniform() + np.arange(N)) / N)


def stratified_resample(weights: np.ndarray, rng: Generator) -> np.ndarray:
    """
    One independent uniform point in each stratum [i/N, (i+1)/N).

    Args:
        weights: [N] normalized weights
        rng: NumPy random generator

    Returns:
        indices: [N]
    """
    N = len(weights)
    return _inverse_cdf(weights, (rng.uniform(size=N) + np.arange(N)) / N)


def multinomial_resample(weights: np.ndarray, rng: Generator) -> np.ndarray:
    """N independent categorical draws."""
    N = len(weights)
    return rng.choice(N, size=N, p=weights / weights.sum())


def residual_resample(weights: np.ndarray, rng: Generator) -> np.ndarray:
    """
    floor(N w_i) deterministic copies of each particle; the remaining slots
    are filled by multinomial draws on the fractional parts.

    Args:
        weights: [N] normalized weights
        rng: NumPy random generator

    Returns:
        indices: [N]
    """
    N = len(weights)
    scaled = N * weights
    copies = np.floor(scaled).astype(int)
    kept = np.repeat(np.arange(N), copies)

    remaining = N - kept.size
    if remaining == 0:
        return kept
    fractional = scaled - copies
    extra = rng.choice(N, size=remaining, p=fractional / fractional.sum())
    return np.concatenate([kept, extra])


RESAMPLERS = {
    "none": no_resample,
    "systematic": systematic_resample,
    "stratified": stratified_resample,
    "multinomial": multinomial_resample,
    "residual": residual_resample,
}


def get_resampler(method) -> Resampler:
    """
    Resolve a strategy by registered name; callables are returned as is.

    Raises:
        ValueError: for an unregistered name
    """
    if callable(method):
        return method
    if method not in RESAMPLERS:
        raise ValueError(
            f"Unknown resample method: {method!r}, expected one of {sorted(RESAMPLERS)}"
        )
    return RESAMPLERS[method]


def effective_sample_size(weights: np.ndarray) -> float:
    """
    ESS = 1 / sum(w_i^2) of normalized weights, clipped to [1, N] against
    rounding.
    """
    return float(np.clip(1.0 / np.sum(weights ** 2), 1.0, len(weights)))
