"""
Deterministic synthetic terrain for demos and tests.

Layered sines, two linear ridges, value-noise octaves and a carved valley on
a 500 m base, placed on a 0.001 degree grid in the Appalachians.
"""

import logging

import numpy as np

from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

SAMPLE_ORIGIN_X = -83.5
SAMPLE_BASE_Y = 37.5
SAMPLE_PIXEL_SIZE = 0.001
BASE_ELEVATION = 500.0

_MASK32 = np.uint64(0xFFFFFFFF)


def _hash(ix: np.ndarray, iy: np.ndarray) -> np.ndarray:
    """Integer lattice hash to [0, 1], 32-bit wraparound arithmetic."""
    x = ix.astype(np.int64).astype(np.uint64)
    y = iy.astype(np.int64).astype(np.uint64)
    h = (x * np.uint64(374761393) + y * np.uint64(668265263)) & _MASK32
    h = ((h ^ (h >> np.uint64(13))) * np.uint64(1274126177)) & _MASK32
    h = h ^ (h >> np.uint64(16))
    return (h & np.uint64(0x7FFFFFFF)).astype(np.float64) / 0x7FFFFFFF


def smooth_noise(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Value noise with smoothstep interpolation between lattice points."""
    ix = np.floor(x)
    iy = np.floor(y)
    sx = (x - ix) ** 2 * (3 - 2 * (x - ix))
    sy = (y - iy) ** 2 * (3 - 2 * (y - iy))

    n00 = _hash(ix, iy)
    n10 = _hash(ix + 1, iy)
    n01 = _hash(ix, iy + 1)
    n11 = _hash(ix + 1, iy + 1)

    nx0 = n00 + (n10 - n00) * sx
    nx1 = n01 + (n11 - n01) * sx
    return nx0 + (nx1 - nx0) * sy


def fractal_noise(x: np.ndarray, y: np.ndarray, octaves: int) -> np.ndarray:
    total = np.zeros(np.broadcast(x, y).shape)
    amplitude, frequency, norm = 1.0, 1.0, 0.0
    for _ in range(octaves):
        total += smooth_noise(x * frequency, y * frequency) * amplitude
        norm += amplitude
        amplitude *= 0.5
        frequency *= 2
    return total / norm


def generate_sample_terrain(width: int = 256, height: int = 256) -> ElevationGrid:
    """
    Build the synthetic sample grid.

    Args:
        width: Columns
        height: Rows

    Returns:
        ElevationGrid in EPSG:4326 with no sentinel
    """
    nx, ny = np.meshgrid(np.arange(width) / width, np.arange(height) / height)

    elev = np.sin(nx * np.pi * 2) * 40
    elev += np.sin(ny * np.pi * 3) * 30
    elev += np.sin((nx + ny) * np.pi * 4) * 25

    # Ridges
    elev += np.maximum(0, 1 - np.abs(ny - nx - 0.1) * 4) * 120
    elev += np.maximum(0, 1 - np.abs(ny - 0.7 * nx - 0.3) * 5) * 80

    elev += fractal_noise(nx * 8, ny * 8, 6) * 100
    elev += fractal_noise(nx * 16 + 100, ny * 16 + 100, 4) * 40

    # Valley
    elev -= np.maximum(0, 1 - np.abs(nx - 0.6) * 6) * np.sin(ny * np.pi * 2) * 50

    elev += BASE_ELEVATION

    logger.info(f"Generated {width}x{height} sample terrain: {elev.min():.1f} to {elev.max():.1f} m")
    return ElevationGrid.from_array(
        elev.astype(np.float32),
        pixel_size=(SAMPLE_PIXEL_SIZE, SAMPLE_PIXEL_SIZE),
        origin=(SAMPLE_ORIGIN_X, SAMPLE_BASE_Y + height * SAMPLE_PIXEL_SIZE),
        crs_hint="EPSG:4326",
        format_label="Synthetic Sample",
    )
