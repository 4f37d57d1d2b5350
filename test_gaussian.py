"""
Tests for the Cholesky-parameterized Gaussian primitive.

Run: pytest test_gaussian.py -v
"""

import numpy as np
import pytest
from scipy import stats

from bearing_particle_filter.errors import ConfigurationError
from bearing_particle_filter.models.gaussian import (
    GaussianDistribution,
    cholesky_factor,
    gaussian_log_density,
    sample_gaussian,
)

from conftest import assert_close


def naive_log_density(x, mean, cov):
    """Textbook formula with an explicit determinant and inverse."""
    n = len(mean)
    r = x - mean
    return -0.5 * (
        n * np.log(2 * np.pi)
        + np.log(np.linalg.det(cov))
        + r @ np.linalg.inv(cov) @ r
    )


@pytest.fixture
def cov_2d():
    return np.array([[2.0, 0.3], [0.3, 0.5]])


@pytest.fixture
def cov_4d():
    A = np.array([
        [1.0, 0.2, 0.0, 0.1],
        [0.0, 0.8, 0.3, 0.0],
        [0.1, 0.0, 1.5, 0.2],
        [0.0, 0.4, 0.0, 0.6],
    ])
    return A @ A.T + 0.1 * np.eye(4)


class TestCholeskyFactor:

    def test_factor_reproduces_covariance(self, cov_4d):
        L = cholesky_factor(cov_4d)
        assert np.allclose(np.triu(L, 1), 0.0)
        assert_close("L L^T", L @ L.T, cov_4d, atol=1e-12, rtol=1e-12)

    def test_diagonal_covariance_gives_sqrt_diagonal(self):
        L = cholesky_factor(np.diag([4.0, 9.0]))
        assert_close("diag L", L, np.diag([2.0, 3.0]), atol=0, rtol=1e-15)

    def test_not_positive_definite_raises(self):
        with pytest.raises(ConfigurationError, match="positive definite"):
            cholesky_factor(np.diag([1.0, -1.0]), name="bad")

    def test_singular_raises(self):
        with pytest.raises(ConfigurationError):
            cholesky_factor(np.zeros((2, 2)))

    def test_non_square_raises(self):
        with pytest.raises(ConfigurationError, match="square"):
            cholesky_factor(np.ones((2, 3)))

    def test_asymmetric_raises(self):
        with pytest.raises(ConfigurationError, match="symmetric"):
            cholesky_factor(np.array([[1.0, 0.5], [0.0, 1.0]]))

    def test_nan_raises(self):
        with pytest.raises(ConfigurationError):
            cholesky_factor(np.array([[np.nan, 0.0], [0.0, 1.0]]))


class TestLogDensity:

    @pytest.mark.parametrize("cov_name", ["cov_2d", "cov_4d"])
    def test_matches_naive_formula(self, cov_name, request, rng):
        cov = request.getfixturevalue(cov_name)
        n = cov.shape[0]
        L = cholesky_factor(cov)
        mean = rng.normal(size=n)

        for _ in range(5):
            x = mean + rng.normal(size=n)
            lp = gaussian_log_density(x, mean, L)
            assert abs(lp - naive_log_density(x, mean, cov)) < 1e-10

    def test_matches_scipy(self, cov_4d, rng):
        L = cholesky_factor(cov_4d)
        mean = np.array([1.0, -2.0, 0.5, 3.0])
        x = mean + rng.normal(size=(20, 4))

        expected = stats.multivariate_normal(mean=mean, cov=cov_4d).logpdf(x)
        assert_close("batched logpdf", gaussian_log_density(x, mean, L), expected, atol=1e-10, rtol=1e-12)

    def test_single_point_returns_float(self, cov_2d):
        L = cholesky_factor(cov_2d)
        lp = gaussian_log_density(np.zeros(2), np.zeros(2), L)
        assert isinstance(lp, float)

    def test_batched_mean(self, cov_2d, rng):
        """Per-row means give per-row densities."""
        L = cholesky_factor(cov_2d)
        x = rng.normal(size=(6, 2))
        means = rng.normal(size=(6, 2))
        batched = gaussian_log_density(x, means, L)
        rowwise = [gaussian_log_density(x[i], means[i], L) for i in range(6)]
        assert_close("per-row mean", batched, rowwise, atol=1e-12, rtol=1e-12)

    def test_peak_value(self):
        """At the mean of N(0, s^2 I) the density is (2 pi s^2)^{-n/2}."""
        s = 0.3
        L = s * np.eye(3)
        expected = -1.5 * np.log(2 * np.pi * s ** 2)
        assert abs(gaussian_log_density(np.zeros(3), np.zeros(3), L) - expected) < 1e-12


class TestSampling:

    M = 100_000
    REL_TOL = 0.05

    def test_empirical_moments_converge(self, cov_4d):
        rng = np.random.default_rng(7)
        mean = np.array([1.0, 2.0, -3.0, 4.0])
        L = cholesky_factor(cov_4d)

        x = sample_gaussian(rng, mean, L, size=self.M)
        assert x.shape == (self.M, 4)

        emp_mean = x.mean(axis=0)
        emp_cov = np.cov(x, rowvar=False)

        mean_err = np.linalg.norm(emp_mean - mean) / np.linalg.norm(mean)
        cov_err = np.linalg.norm(emp_cov - L @ L.T) / np.linalg.norm(L @ L.T)
        assert mean_err < self.REL_TOL
        assert cov_err < self.REL_TOL

    def test_samples_consistent_with_log_density(self, cov_2d):
        """Average log-density of own samples is -(n/2)(log 2pi + 1) - 0.5 logdet."""
        rng = np.random.default_rng(11)
        mean = np.array([0.5, -0.5])
        L = cholesky_factor(cov_2d)

        x = sample_gaussian(rng, mean, L, size=self.M)
        avg_lp = np.mean(gaussian_log_density(x, mean, L))
        expected = -0.5 * (2 * (np.log(2 * np.pi) + 1) + np.log(np.linalg.det(cov_2d)))
        assert abs(avg_lp - expected) < 0.02

    def test_single_draw_shape(self, cov_2d, rng):
        L = cholesky_factor(cov_2d)
        assert sample_gaussian(rng, np.zeros(2), L).shape == (2,)

    def test_batched_mean_draws_one_per_row(self, cov_2d, rng):
        L = cholesky_factor(cov_2d)
        means = np.array([[0.0, 0.0], [100.0, 100.0], [-100.0, 0.0]])
        x = sample_gaussian(rng, means, L)
        assert x.shape == (3, 2)
        assert np.all(np.abs(x - means) < 10.0)

    def test_reproducible_with_seed(self, cov_4d):
        L = cholesky_factor(cov_4d)
        a = sample_gaussian(np.random.default_rng(3), np.zeros(4), L, size=10)
        b = sample_gaussian(np.random.default_rng(3), np.zeros(4), L, size=10)
        assert np.array_equal(a, b)


class TestGaussianDistribution:

    def test_from_covariance(self, cov_2d):
        dist = GaussianDistribution.from_covariance([1.0, 2.0], cov_2d)
        assert dist.dim == 2
        assert_close("covariance", dist.covariance, cov_2d, atol=1e-14, rtol=1e-12)

    def test_mean_dimension_mismatch_raises(self, cov_2d):
        with pytest.raises(ConfigurationError, match="mean"):
            GaussianDistribution.from_covariance([1.0, 2.0, 3.0], cov_2d)

    def test_location_override(self, cov_2d):
        dist = GaussianDistribution.from_covariance([0.0, 0.0], cov_2d)
        x = np.array([5.0, 5.0])
        assert dist.log_prob(x, mean=x) == pytest.approx(
            gaussian_log_density(np.zeros(2), np.zeros(2), dist.chol)
        )
