"""Tests for blue-noise point sampling."""

import numpy as np
import pytest
from scipy.spatial import cKDTree

from py_terrain.core.point_sampler import SamplingOptions, min_separation, sample_points


class TestPointSampler:
    """Test Poisson-disk sampling."""

    def test_points_within_bounds(self):
        """Test that all points are inside the domain."""
        rng = np.random.default_rng(1)
        points = sample_points(300, 200, 400, rng)

        assert points.shape[1] == 2
        assert np.all(points[:, 0] >= 0)
        assert np.all(points[:, 0] < 300)
        assert np.all(points[:, 1] >= 0)
        assert np.all(points[:, 1] < 200)

    def test_minimum_separation(self):
        """Test that no two points are closer than the minimum distance."""
        rng = np.random.default_rng(2)
        points = sample_points(500, 500, 800, rng)
        radius = min_separation(500, 500, 800)

        distances, _ = cKDTree(points).query(points, k=2)
        assert distances[:, 1].min() >= radius - 1e-9

    def test_density_band(self):
        """Test that the realized count lands within 50%-150% of target."""
        rng = np.random.default_rng(3)
        points = sample_points(1000, 1000, 1000, rng)
        assert 500 <= len(points) <= 1500

    def test_reproducibility(self):
        """Test that the same seed gives the same points."""
        points1 = sample_points(200, 200, 200, np.random.default_rng(42))
        points2 = sample_points(200, 200, 200, np.random.default_rng(42))
        np.testing.assert_array_equal(points1, points2)

    def test_different_seeds(self):
        """Test that different seeds give different points."""
        points1 = sample_points(200, 200, 200, np.random.default_rng(1))
        points2 = sample_points(200, 200, 200, np.random.default_rng(2))
        assert not np.array_equal(points1, points2)

    def test_separation_formula(self):
        """Test the separation derived from target density."""
        assert min_separation(100, 100, 100) == pytest.approx(8.5)
        assert min_separation(100, 100, 100, separation_factor=1.0) == pytest.approx(10.0)

    def test_invalid_options(self):
        """Test option validation."""
        with pytest.raises(ValueError):
            SamplingOptions(max_attempts=0)
        with pytest.raises(ValueError):
            SamplingOptions(separation_factor=0)


@pytest.mark.parametrize("width,height,target", [
    (0, 100, 100),
    (100, 0, 100),
    (-10, 100, 100),
    (100, 100, 0),
])
def test_degenerate_input(width, height, target):
    """Test that degenerate domains produce an empty point set."""
    points = sample_points(width, height, target, np.random.default_rng(0))
    assert points.shape == (0, 2)
    assert min_separation(width, height, target) == 0.0
