"""
Tests for the synthetic sample terrain.
"""

import numpy as np
import pytest

from src.terrain_ingest.sample_terrain import fractal_noise, generate_sample_terrain, smooth_noise


class TestNoise:
    def test_smooth_noise_in_unit_range(self):
        xs, ys = np.meshgrid(np.linspace(0, 20, 50), np.linspace(0, 20, 50))
        values = smooth_noise(xs, ys)
        assert values.min() >= 0.0
        assert values.max() <= 1.0

    def test_lattice_continuity(self):
        # Value at an integer lattice point equals the limit from either side
        left = smooth_noise(np.array([2.999999]), np.array([5.0]))
        right = smooth_noise(np.array([3.0]), np.array([5.0]))
        assert left[0] == pytest.approx(right[0], abs=1e-4)

    def test_fractal_normalized(self):
        values = fractal_noise(np.linspace(0, 8, 100), np.linspace(0, 8, 100), 6)
        assert 0.0 <= values.min() and values.max() <= 1.0


class TestGenerateSampleTerrain:
    """Tests for generate_sample_terrain."""

    def test_georeferencing(self):
        grid = generate_sample_terrain()

        assert (grid.width, grid.height) == (256, 256)
        assert grid.crs_hint == "EPSG:4326"
        assert grid.pixel_size == (0.001, 0.001)
        assert grid.origin.x == -83.5
        assert grid.origin.y == pytest.approx(37.756)
        assert grid.no_data_value is None

    def test_deterministic(self):
        assert np.array_equal(generate_sample_terrain(64, 32).elevations, generate_sample_terrain(64, 32).elevations)

    def test_plausible_relief(self):
        low, high = generate_sample_terrain().elevation_range()
        assert 300.0 < low < high < 1100.0
        assert high - low > 100.0
