"""
Synthetic bearing tracks.

A target moves at constant velocity along a straight line and both sensors
report its bearing corrupted by independent Gaussian noise.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple
from numpy.random import Generator, default_rng

from ..models.bearing_only import BearingOnlyConfig, bearings


@dataclass
class Trajectory:
    """
    True states and the bearings observed along them.

    Attributes:
        states: [T+1, 4] rows [px, py, vx, vy] for k = 0..T
        observations: [T, 2] bearing pairs for k = 1..T
        metadata: Free-form description of how the track was produced
    """
    states: np.ndarray
    observations: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def T(self) -> int:
        return self.observations.shape[0]

    @property
    def positions(self) -> np.ndarray:
        """[T+1, 2] true (x, y)."""
        return self.states[:, :2]

    def save(self, path: str):
        """Write to an .npz archive."""
        np.savez(path, states=self.states, observations=self.observations,
                 metadata=np.array(self.metadata, dtype=object))

    @classmethod
    def load(cls, path: str) -> "Trajectory":
        with np.load(path, allow_pickle=True) as data:
            return cls(
                states=data["states"],
                observations=data["observations"],
                metadata=data["metadata"].item(),
            )


def straight_line_states(
    start: Tuple[float, float],
    end: Tuple[float, float],
    T: int,
    dt: float = 1.0,
) -> np.ndarray:
    """
    Constant-velocity motion from `start` (k = 0) to `end` (k = T).

    Returns:
        states: [T+1, 4] rows [px, py, vx, vy]
    """
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    velocity = (end - start) / (T * dt)

    states = np.empty((T + 1, 4))
    states[:, :2] = start + np.outer(dt * np.arange(T + 1), velocity)
    states[:, 2:] = velocity
    return states


def simulate_bearing_track(
    config: BearingOnlyConfig,
    start: Tuple[float, float],
    end: Tuple[float, float],
    T: int,
    noise_std: Optional[float] = None,
    seed: Optional[int] = None,
    rng: Optional[Generator] = None,
) -> Trajectory:
    """
    Straight-line target observed by the two sensors of `config`.

    Args:
        config: Supplies the sensor locations and dt
        start, end: Positions at k = 0 and k = T
        T: Number of observations
        noise_std: Bearing noise standard deviation (default: config.sr)
        seed: Random seed (ignored if rng is provided)
        rng: NumPy random generator (optional)

    Returns:
        Trajectory with states [T+1, 4] and observations [T, 2]
    """
    if rng is None:
        rng = default_rng(seed)
    if noise_std is None:
        noise_std = config.sr

    states = straight_line_states(start, end, T, config.dt)
    clean = bearings(states[1:], config.sensor1, config.sensor2)
    observations = clean + noise_std * rng.standard_normal(clean.shape)

    return Trajectory(
        states=states,
        observations=observations,
        metadata={
            "start": tuple(float(v) for v in start),
            "end": tuple(float(v) for v in end),
            "noise_std": float(noise_std),
            "sensors": (config.sensor1, config.sensor2),
        },
    )
