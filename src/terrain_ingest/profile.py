"""Elevation profile along a straight transect."""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileStats:
    start_elevation: float
    end_elevation: float
    min_elevation: float
    max_elevation: float
    total_ascent: float
    total_descent: float
    distance: float


@dataclass(frozen=True)
class ElevationProfile:
    """Samples along a transect.

    Attributes:
        distances: Distance from the start, in grid cells, per kept sample
        elevations: Elevation per kept sample
        stats: Summary of the kept samples
    """

    distances: np.ndarray
    elevations: np.ndarray
    stats: ProfileStats


def sample_profile(
    grid: ElevationGrid,
    start: Tuple[float, float],
    end: Tuple[float, float],
    num_samples: int = 200,
) -> ElevationProfile:
    """
    Sample elevations between two normalized points.

    Endpoints are (u, v) in [0, 1], u along columns (west to east) and v
    along rows (north to south); values outside are clamped. The transect is
    split into ``num_samples`` intervals and each point reads the nearest
    cell at or below it. No-data cells are skipped, and ascent/descent sum
    the differences between consecutive kept samples.

    Args:
        grid: Elevation grid to sample
        start: (u, v) of the first point
        end: (u, v) of the last point
        num_samples: Number of intervals (num_samples + 1 points)

    Returns:
        ElevationProfile; with no valid samples every statistic except
        distance is 0
    """
    if num_samples < 1:
        raise ValueError(f"num_samples must be >= 1, got {num_samples}")

    u0, v0 = np.clip(start, 0.0, 1.0)
    u1, v1 = np.clip(end, 0.0, 1.0)
    t = np.arange(num_samples + 1, dtype=np.float64) / num_samples

    span_x = (u1 - u0) * (grid.width - 1)
    span_y = (v1 - v0) * (grid.height - 1)
    distance = float(np.hypot(span_x, span_y))

    cols = np.clip(np.floor((u0 + (u1 - u0) * t) * (grid.width - 1)), 0, grid.width - 1).astype(np.intp)
    rows = np.clip(np.floor((v0 + (v1 - v0) * t) * (grid.height - 1)), 0, grid.height - 1).astype(np.intp)

    keep = grid.valid_mask()[rows, cols]
    elevations = grid.to_array()[rows, cols][keep].astype(np.float64)
    distances = (t * distance)[keep]

    if elevations.size:
        steps = np.diff(elevations)
        stats = ProfileStats(
            start_elevation=float(elevations[0]),
            end_elevation=float(elevations[-1]),
            min_elevation=float(elevations.min()),
            max_elevation=float(elevations.max()),
            total_ascent=float(steps[steps > 0].sum()),
            total_descent=float(-steps[steps < 0].sum()),
            distance=distance,
        )
    else:
        stats = ProfileStats(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, distance)

    logger.debug(f"Profile: {elevations.size}/{t.size} samples kept over {distance:.1f} cells")
    return ElevationProfile(distances=distances, elevations=elevations, stats=stats)
