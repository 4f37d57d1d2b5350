"""
Bearing-only tracking State Space Model with two fixed sensors.

State: [px, py, vx, vy] - position and velocity
Observation: [bearing from sensor 1, bearing from sensor 2] with Gaussian noise

Dynamics follow the discretized constant-velocity diffusion model. The
importance distribution is centred on a baseline trajectory (e.g. the
triangulated noiseless solution) with zero velocity.
"""

import json
import numbers
import numpy as np
from dataclasses import dataclass, asdict, fields
from typing import Tuple

from .base import StateSpaceModel
from .gaussian import GaussianDistribution
from ..errors import ConfigurationError


@dataclass(frozen=True)
class BearingOnlyConfig:
    """
    Hyperparameters of the bearing-only model.

    Defaults describe a field deployment: two sensors a couple of hundred
    metres apart, coordinates in degrees.

    Attributes:
        sensor1, sensor2: (x, y) sensor locations
        dt: Time step
        sr: Measurement covariance term, R = diag(sr, sr)
        q1, q2: Diffusion coefficients for the x and y axes
        prior_mu_x, prior_mu_y: Prior position mean (velocity mean is zero)
        prior_cov_diag: [nx] Prior covariance diagonal
        importance_cov_diag: [nx] Importance covariance diagonal
        n_particles: Number of particles N
        state_dim: nx (positions followed by velocities)
        obs_dim: ny (one bearing per sensor)
    """
    sensor1: Tuple[float, float] = (-93.2494663765932, 41.5563518606521)
    sensor2: Tuple[float, float] = (-93.2475338232000, 41.5576632356000)
    dt: float = 1.0
    sr: float = 0.01

    q1: float = 0.0005
    q2: float = 0.0005

    prior_mu_x: float = -93.24952047
    prior_mu_y: float = 41.55575337
    prior_cov_diag: Tuple[float, ...] = (5.0e-09, 3.5e-08, 5.0e-04, 5.0e-04)

    importance_cov_diag: Tuple[float, ...] = (3 * 5.00e-10, 3 * 1.75e-08, 3 * 5.00e-05, 3 * 5.00e-05)

    n_particles: int = 100
    state_dim: int = 4
    obs_dim: int = 2

    def __post_init__(self):
        # Normalize sequences to tuples of floats so the config stays hashable
        for name in ("sensor1", "sensor2", "prior_cov_diag", "importance_cov_diag"):
            try:
                value = tuple(float(v) for v in getattr(self, name))
            except (TypeError, ValueError) as err:
                raise ConfigurationError(f"{name} must be a sequence of numbers") from err
            object.__setattr__(self, name, value)

        for name in ("dt", "sr", "q1", "q2", "prior_mu_x", "prior_mu_y"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
            object.__setattr__(self, name, float(value))

        for name in ("n_particles", "state_dim", "obs_dim"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) \
                    or not np.isfinite(value) or int(value) != value:
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))

        if self.obs_dim != 2:
            raise ConfigurationError(f"Two sensors give obs_dim=2, got {self.obs_dim}")
        if self.state_dim != 2 * self.obs_dim:
            raise ConfigurationError(
                f"State is [px, py, vx, vy]: state_dim must be 4, got {self.state_dim}"
            )
        if len(self.sensor1) != 2 or len(self.sensor2) != 2:
            raise ConfigurationError("Sensor locations must be (x, y) pairs")
        if self.sensor1 == self.sensor2:
            raise ConfigurationError("Sensor locations must differ")
        if self.n_particles < 1:
            raise ConfigurationError(f"n_particles must be a positive integer, got {self.n_particles}")
        if not self.dt > 0:
            raise ConfigurationError(f"dt must be positive, got {self.dt}")
        if not self.sr > 0:
            raise ConfigurationError(f"sr must be positive, got {self.sr}")
        if self.q1 < 0 or self.q2 < 0:
            raise ConfigurationError(f"Diffusion coefficients must be >= 0, got q1={self.q1}, q2={self.q2}")
        for name in ("prior_cov_diag", "importance_cov_diag"):
            if len(getattr(self, name)) != self.state_dim:
                raise ConfigurationError(
                    f"{name} needs {self.state_dim} entries, got {len(getattr(self, name))}"
                )

    @classmethod
    def from_dict(cls, params: dict) -> "BearingOnlyConfig":
        """Build from a flat dict; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(params) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**params)

    @classmethod
    def from_json(cls, path: str) -> "BearingOnlyConfig":
        """Load from a JSON file holding a flat object of fields."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict:
        return asdict(self)

    def replace(self, **changes) -> "BearingOnlyConfig":
        params = self.to_dict()
        params.update(changes)
        return BearingOnlyConfig(**params)


# -----------------------------------------------------------------------------
# Observation function
# -----------------------------------------------------------------------------

def bearings(x: np.ndarray, sensor1, sensor2) -> np.ndarray:
    """
    Bearing angles of the position components seen from two sensors.

    Args:
        x: [N, nx] or [nx] states with [px, py, ...]
        sensor1, sensor2: (x, y) sensor locations

    Returns:
        y: [N, 2] or [2] bearings in radians, atan2 convention
    """
    single = x.ndim == 1
    if single:
        x = x[None, :]

    px, py = x[:, 0], x[:, 1]
    th1 = np.arctan2(py - sensor1[1], px - sensor1[0])
    th2 = np.arctan2(py - sensor2[1], px - sensor2[0])

    y = np.stack([th1, th2], axis=-1)

    if single:
        return y[0]
    return y


# -----------------------------------------------------------------------------
# Distribution construction
# -----------------------------------------------------------------------------

def constant_velocity_transition(dt: float, state_dim: int = 4) -> np.ndarray:
    """Identity with position += velocity * dt coupling."""
    n_axes = state_dim // 2
    F = np.eye(state_dim)
    F[:n_axes, n_axes:] = dt * np.eye(n_axes)
    return F


def constant_velocity_covariance(q: Tuple[float, ...], dt: float) -> np.ndarray:
    """
    Process covariance of the discretized constant-velocity diffusion model.

    For each axis a the block over (position_a, velocity_a) is

        q_a * [[dt^3/3, dt^2/2],
               [dt^2/2, dt    ]]

    and different axes are independent.

    Args:
        q: Diffusion coefficient per axis
        dt: Time step

    Returns:
        Q: [2 * len(q), 2 * len(q)] with positions first, then velocities
    """
    n_axes = len(q)
    Q = np.zeros((2 * n_axes, 2 * n_axes))
    for a, qa in enumerate(q):
        p, v = a, n_axes + a
        Q[p, p] = qa * dt ** 3 / 3.0
        Q[p, v] = qa * dt ** 2 / 2.0
        Q[v, p] = qa * dt ** 2 / 2.0
        Q[v, v] = qa * dt
    return Q


def init_state_prior(config: BearingOnlyConfig) -> GaussianDistribution:
    """N((mu_x, mu_y, 0, 0), diag(prior_cov_diag))."""
    mean = np.zeros(config.state_dim)
    mean[0], mean[1] = config.prior_mu_x, config.prior_mu_y
    return GaussianDistribution.from_covariance(
        mean, np.diag(config.prior_cov_diag), name="state prior covariance"
    )


def init_process_noise(config: BearingOnlyConfig, baseline: np.ndarray) -> Tuple[GaussianDistribution, np.ndarray]:
    """
    Process distribution and transition matrix.

    The fixed process location is the first baseline point with zero
    velocity; it is used when the density is evaluated without applying
    the transition.

    Returns:
        process: N(mean, Q)
        F: [nx, nx] transition matrix
    """
    mean = np.zeros(config.state_dim)
    mean[:2] = baseline[0]
    Q = constant_velocity_covariance((config.q1, config.q2), config.dt)
    process = GaussianDistribution.from_covariance(mean, Q, name="process covariance")
    return process, constant_velocity_transition(config.dt, config.state_dim)


def init_importance_proposal(config: BearingOnlyConfig) -> GaussianDistribution:
    """N(0, diag(importance_cov_diag)); the location comes from the baseline."""
    return GaussianDistribution.from_covariance(
        np.zeros(config.state_dim), np.diag(config.importance_cov_diag),
        name="importance covariance",
    )


def init_measurement_noise(config: BearingOnlyConfig) -> GaussianDistribution:
    """N(0, diag(sr, sr)) noise on the two bearings."""
    return GaussianDistribution.from_covariance(
        np.zeros(config.obs_dim), np.diag(np.full(config.obs_dim, config.sr)),
        name="measurement covariance",
    )


def make_bearing_only_ssm(config: BearingOnlyConfig, baseline: np.ndarray) -> StateSpaceModel:
    """
    Bearing-only SSM for a given configuration and baseline trajectory.

    Args:
        config: Model hyperparameters
        baseline: [T, 2] approximate (x, y) positions, row t-1 belongs to
                  observation t

    Returns:
        StateSpaceModel instance with additional attributes:
            - config: the BearingOnlyConfig
            - baseline: read-only copy of the baseline
    """
    baseline = np.array(baseline, dtype=np.float64)
    if baseline.ndim != 2 or baseline.shape[1] != config.obs_dim or baseline.shape[0] < 1:
        raise ConfigurationError(
            f"baseline must have shape [T, {config.obs_dim}] with T >= 1, got {baseline.shape}"
        )
    if not np.all(np.isfinite(baseline)):
        raise ConfigurationError("baseline contains non-finite entries")
    baseline.setflags(write=False)

    nx = config.state_dim
    T = baseline.shape[0]
    sensor1, sensor2 = config.sensor1, config.sensor2

    prior = init_state_prior(config)
    process, F = init_process_noise(config, baseline)
    importance = init_importance_proposal(config)
    measurement = init_measurement_noise(config)

    def obs_mean(x: np.ndarray) -> np.ndarray:
        """Bearing pair for each particle."""
        return bearings(x, sensor1, sensor2)

    def importance_mean(t: int) -> np.ndarray:
        """Baseline point for observation t, padded with zero velocity."""
        if not 1 <= t <= T:
            raise IndexError(f"Step {t} outside baseline range 1..{T}")
        mu = np.zeros(nx)
        mu[:2] = baseline[t - 1]
        return mu

    model = StateSpaceModel(
        state_dim=nx,
        obs_dim=config.obs_dim,
        prior=prior,
        process=process,
        transition=F,
        measurement=measurement,
        importance=importance,
        obs_mean=obs_mean,
        importance_mean=importance_mean,
        n_steps=T,
    )
    model.config = config
    model.baseline = baseline

    return model
