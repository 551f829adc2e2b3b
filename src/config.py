"""Configuration module for terrain-ingest project.

Centralizes decoding limits and rendering defaults.
"""
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Point cloud limits
MAX_POINTS = 10_000_000
MIN_GRID_RESOLUTION = 64
MAX_GRID_RESOLUTION = 512
GAP_FILL_PASSES = 3
LAZ_CHUNK_SIZE = 1_000_000
MAX_XYZ_CELLS = 16_000_000

# Fixed sentinels
DEFAULT_NODATA = -32767.0

# Surface rendering
MAX_TEXTURE_SIZE = 1024
SLOPE_CLIP_DEGREES = 60.0
FLAT_SLOPE_RADIANS = 0.01

# Default settings
DEFAULT_COLOR_RAMP = "terrain"
DEFAULT_LOG_LEVEL = "INFO"
