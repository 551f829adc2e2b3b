"""Tests for configuration module."""
from src import config


def test_project_root_exists():
    """Test that PROJECT_ROOT is set correctly."""
    assert config.PROJECT_ROOT.exists()
    assert config.PROJECT_ROOT.is_dir()


def test_grid_resolution_bounds_are_ordered():
    assert 1 <= config.MIN_GRID_RESOLUTION <= config.MAX_GRID_RESOLUTION


def test_config_constants():
    """Test that configuration constants are properly set."""
    assert config.DEFAULT_NODATA == -32767.0
    assert config.MAX_POINTS > 0
    assert config.MAX_XYZ_CELLS >= config.MAX_GRID_RESOLUTION ** 2
    assert config.SLOPE_CLIP_DEGREES == 60.0
    assert isinstance(config.DEFAULT_LOG_LEVEL, str)
