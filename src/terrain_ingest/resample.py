"""
Scatter-to-grid resampling for point data.

Bins scattered (x, y, z) samples into a regular north-up grid, averaging
samples that share a cell, then fills empty cells from their neighbors so
the result is render-ready.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy import ndimage

from src.config import GAP_FILL_PASSES

logger = logging.getLogger(__name__)

_NEIGHBORHOOD = np.ones((3, 3), dtype=np.float64)


@dataclass
class ResampledGrid:
    """Output of points_to_grid(); elevations has shape (height, width)."""

    elevations: np.ndarray
    width: int
    height: int
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def pixel_size(self) -> Tuple[float, float]:
        """Cell spacing, treating a collapsed range as unit spacing."""
        size_x = (self.max_x - self.min_x) / (self.width - 1) if self.width > 1 else 0.0
        size_y = (self.max_y - self.min_y) / (self.height - 1) if self.height > 1 else 0.0
        return (size_x or 1.0, size_y or 1.0)


def sampling_stride(total_points: int, max_points: int) -> int:
    """Stride that keeps at most max_points of total_points, spread evenly."""
    if total_points <= max_points:
        return 1
    return math.ceil(total_points / max_points)


def near_square_shape(count: int) -> Tuple[int, int]:
    """(width, height) of the smallest near-square grid holding count values."""
    width = max(1, math.ceil(math.sqrt(count)))
    height = max(1, math.ceil(count / width))
    return width, height


def target_grid_size(point_count: int, min_size: int, max_size: int) -> int:
    """Larger grid side for a cloud of point_count points (about two points per cell)."""
    return max(min_size, min(max_size, math.ceil(math.sqrt(point_count / 2))))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fill_gaps(grid: np.ndarray, passes: int = GAP_FILL_PASSES) -> np.ndarray:
    """
    Fill NaN cells of a 2D grid.

    Runs up to ``passes`` rounds of 3x3 neighborhood averaging (each round
    only sees values filled by earlier rounds), then assigns the mean of all
    filled cells to anything still empty. An all-NaN grid becomes zeros.

    Args:
        grid: 2D float array with NaN marking empty cells (not modified)
        passes: Number of neighbor-averaging rounds

    Returns:
        New float64 array with no NaN values
    """
    result = np.array(grid, dtype=np.float64, copy=True)

    for pass_index in range(passes):
        missing = np.isnan(result)
        if not np.any(missing):
            break

        known = ~missing
        sums = ndimage.convolve(np.where(known, result, 0.0), _NEIGHBORHOOD, mode="constant", cval=0.0)
        counts = ndimage.convolve(known.astype(np.float64), _NEIGHBORHOOD, mode="constant", cval=0.0)

        fillable = missing & (counts > 0)
        if not np.any(fillable):
            break
        result[fillable] = sums[fillable] / counts[fillable]
        logger.debug(f"Gap fill pass {pass_index + 1}: filled {int(fillable.sum())} cells")

    missing = np.isnan(result)
    if np.any(missing):
        known_values = result[~missing]
        global_mean = float(known_values.mean()) if known_values.size else 0.0
        result[missing] = global_mean
        logger.debug(f"Filled {int(missing.sum())} remaining cells with global mean {global_mean:.2f}")

    return result


def points_to_grid(
    xs: np.ndarray,
    ys: np.ndarray,
    zs: np.ndarray,
    grid_size: int,
    passes: int = GAP_FILL_PASSES,
) -> ResampledGrid:
    """
    Average scattered points into an aspect-preserving regular grid.

    The larger grid side equals grid_size; the other follows the bounding
    box aspect ratio. Row 0 holds the maximum Y.

    Args:
        xs, ys, zs: Equal-length coordinate arrays (at least one point)
        grid_size: Cells along the larger side
        passes: Gap-fill rounds before the global-mean fallback

    Returns:
        ResampledGrid with a NaN-free (height, width) elevation array
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    zs = np.asarray(zs, dtype=np.float64)
    if xs.size == 0:
        raise ValueError("points_to_grid requires at least one point")

    min_x, max_x = float(xs.min()), float(xs.max())
    min_y, max_y = float(ys.min()), float(ys.max())
    range_x = (max_x - min_x) or 1.0
    range_y = (max_y - min_y) or 1.0
    aspect = range_x / range_y

    if aspect >= 1:
        width = grid_size
        height = max(1, _round_half_up(grid_size / aspect))
    else:
        height = grid_size
        width = max(1, _round_half_up(grid_size * aspect))

    col = np.floor((xs - min_x) / range_x * (width - 1)).astype(np.int64)
    row = np.floor((max_y - ys) / range_y * (height - 1)).astype(np.int64)
    np.clip(col, 0, width - 1, out=col)
    np.clip(row, 0, height - 1, out=row)
    cell = row * width + col

    sums = np.bincount(cell, weights=zs, minlength=width * height)
    counts = np.bincount(cell, minlength=width * height)

    averaged = np.full(width * height, np.nan, dtype=np.float64)
    occupied = counts > 0
    averaged[occupied] = sums[occupied] / counts[occupied]

    logger.info(f"Binned {xs.size} points into {width}x{height} grid ({int(occupied.sum())} occupied cells)")

    filled = fill_gaps(averaged.reshape(height, width), passes=passes)
    return ResampledGrid(filled, width, height, min_x, max_x, min_y, max_y)
