"""Basic tests to verify project setup."""
import sys
from pathlib import Path

import pytest


def test_python_version():
    """Test that Python version is 3.11 or higher."""
    assert sys.version_info >= (3, 11), f"Python 3.11+ required, got {sys.version}"


def test_src_modules_importable():
    """Test that src modules can be imported."""
    try:
        from src import config
        import src.terrain_ingest as terrain_ingest
    except ImportError as e:
        pytest.fail(f"Failed to import package: {e}")
    assert config.PROJECT_ROOT is not None
    assert callable(terrain_ingest.decode)


def test_public_api_exports():
    import src.terrain_ingest as terrain_ingest

    for name in terrain_ingest.__all__:
        assert hasattr(terrain_ingest, name), name


def test_project_structure():
    """Test that expected project files exist."""
    project_root = Path(__file__).parent.parent
    assert (project_root / "src" / "terrain_ingest").is_dir()
    assert (project_root / "src" / "config.py").is_file()
    assert (project_root / "pyproject.toml").is_file()
