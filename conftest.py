"""Shared pytest fixtures and assertion helpers."""

import numpy as np
import pytest

from bearing_particle_filter.models.bearing_only import BearingOnlyConfig, make_bearing_only_ssm
from bearing_particle_filter.models.triangulation import triangulate
from bearing_particle_filter.simulation.trajectory import simulate_bearing_track


# ============================================================================
# Assertion helpers
# ============================================================================

def assert_close(name: str, a, b, atol: float, rtol: float):
    """Check two arrays are close within tolerances."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    max_abs = np.max(np.abs(a - b))
    max_rel = np.max(np.abs(a - b) / (np.abs(b) + 1e-12))

    if not np.allclose(a, b, atol=atol, rtol=rtol):
        pytest.fail(
            f"{name}: FAILED\n"
            f"  max_abs_diff={max_abs:.3e}, max_rel_diff={max_rel:.3e}\n"
            f"  required: atol={atol:.0e}, rtol={rtol:.0e}"
        )


def assert_weight_invariants(result, atol: float = 1e-9):
    """Rows sum to one, row 0 is exactly uniform, 1 <= ESS <= N."""
    N = result.n_particles
    assert np.all(result.weights[0] == 1.0 / N)
    assert_close("weight row sums", result.weights[1:].sum(axis=1), np.ones(result.T), atol=atol, rtol=0)
    assert np.all(result.weights >= 0)
    assert np.all(np.isfinite(result.weights))
    assert np.all(result.ess >= 1.0)
    assert np.all(result.ess <= N)


# ============================================================================
# Scenario
# ============================================================================

# Two sensors 10 units apart, target moving slowly along y = 5 between them.
# Proposal spreads are matched to the per-step posterior so the importance
# weights stay well balanced.
SCENARIO = dict(
    sensor1=(0.0, 0.0),
    sensor2=(10.0, 0.0),
    dt=1.0,
    sr=0.0025,
    q1=400.0,
    q2=400.0,
    prior_mu_x=4.5,
    prior_mu_y=5.0,
    prior_cov_diag=(1.0, 1.0, 1.0, 1.0),
    importance_cov_diag=(0.125, 0.125, 100.0, 100.0),
    n_particles=200,
)
TRACK_START = (4.5, 5.0)
TRACK_END = (5.5, 5.0)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducibility."""
    return np.random.default_rng(42)


@pytest.fixture
def scenario_config():
    return BearingOnlyConfig(**SCENARIO)


@pytest.fixture
def scenario_track(scenario_config):
    """T = 10 straight-line track with bearing noise std = sr."""
    return simulate_bearing_track(
        scenario_config, TRACK_START, TRACK_END, T=10, seed=2024,
    )


@pytest.fixture
def scenario_model(scenario_config, scenario_track):
    baseline = triangulate(
        scenario_track.observations, scenario_config.sensor1, scenario_config.sensor2
    )
    return make_bearing_only_ssm(scenario_config, baseline)
