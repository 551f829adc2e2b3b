"""
Tests for elevation profile sampling.
"""

import numpy as np
import pytest

from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.profile import sample_profile


@pytest.fixture
def ridge_line():
    return ElevationGrid.from_array(np.array([[0.0, 10.0, 5.0, 20.0, 20.0]]), no_data_value=-1.0)


class TestSampleProfile:
    """Tests for sample_profile."""

    def test_stats(self, ridge_line):
        profile = sample_profile(ridge_line, (0.0, 0.0), (1.0, 0.0), num_samples=4)
        stats = profile.stats

        assert profile.elevations.tolist() == [0.0, 10.0, 5.0, 20.0, 20.0]
        assert profile.distances.tolist() == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert stats.start_elevation == 0.0
        assert stats.end_elevation == 20.0
        assert stats.min_elevation == 0.0
        assert stats.max_elevation == 20.0
        assert stats.total_ascent == 25.0
        assert stats.total_descent == 5.0
        assert stats.distance == 4.0

    def test_nodata_skipped(self):
        grid = ElevationGrid.from_array(np.array([[0.0, 10.0, -1.0, 20.0, 20.0]]), no_data_value=-1.0)
        profile = sample_profile(grid, (0.0, 0.0), (1.0, 0.0), num_samples=4)

        assert profile.elevations.tolist() == [0.0, 10.0, 20.0, 20.0]
        assert profile.distances.tolist() == [0.0, 1.0, 3.0, 4.0]
        assert profile.stats.total_ascent == 20.0
        assert profile.stats.total_descent == 0.0

    def test_reverse_direction(self, ridge_line):
        stats = sample_profile(ridge_line, (1.0, 0.0), (0.0, 0.0), num_samples=4).stats
        assert stats.total_ascent == 5.0
        assert stats.total_descent == 25.0

    def test_endpoints_clamped(self, ridge_line):
        profile = sample_profile(ridge_line, (-3.0, -1.0), (7.0, 2.0), num_samples=4)
        assert profile.stats.distance == 4.0
        assert profile.elevations[-1] == 20.0

    def test_vertical_transect(self, sample_grid):
        profile = sample_profile(sample_grid, (0.5, 0.0), (0.5, 1.0), num_samples=10)
        assert profile.stats.distance == pytest.approx(39.0)
        assert len(profile.elevations) == 11

    def test_all_nodata(self):
        grid = ElevationGrid.from_array(np.full((2, 2), -1.0), no_data_value=-1.0)
        profile = sample_profile(grid, (0.0, 0.0), (1.0, 1.0))
        assert profile.elevations.size == 0
        assert profile.stats.max_elevation == 0.0
        assert profile.stats.distance == pytest.approx(np.sqrt(2.0))

    def test_invalid_sample_count(self, ridge_line):
        with pytest.raises(ValueError):
            sample_profile(ridge_line, (0, 0), (1, 0), num_samples=0)
