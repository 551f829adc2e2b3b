"""
ASCII XYZ decoder.

Each data line holds ``X Y Z`` separated by whitespace, commas or
semicolons. Regular grids are recognized from their distinct X and Y
counts; irregular or one-dimensional point lists fall back to a
near-square layout.
"""

import logging
import re
import warnings
from typing import Optional, Union

import numpy as np

from src.config import MAX_XYZ_CELLS
from src.terrain_ingest.errors import DegradedRecoveryWarning, EmptyDatasetError
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.options import DEFAULT_OPTIONS, DecodeOptions
from src.terrain_ingest.resample import fill_gaps, near_square_shape

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s,;]+")


def parse_xyz_points(text: str) -> np.ndarray:
    """
    Parse XYZ text into an (N, 3) float64 array.

    Blank lines, comment lines (``#`` or ``/``) and lines without three
    finite numbers are skipped.
    """
    points = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("/"):
            continue
        parts = _SEPARATORS.split(line)
        if len(parts) < 3:
            continue
        try:
            x, y, z = float(parts[0]), float(parts[1]), float(parts[2])
        except ValueError:
            continue
        if np.isfinite(x) and np.isfinite(y) and np.isfinite(z):
            points.append((x, y, z))
    return np.array(points, dtype=np.float64).reshape(-1, 3)


def decode_xyz(
    buffer: Union[bytes, bytearray, memoryview, str],
    options: Optional[DecodeOptions] = None,
) -> ElevationGrid:
    """
    Decode ASCII XYZ text into an elevation grid.

    Args:
        buffer: File contents as bytes or text
        options: DecodeOptions; ``xyz_fill_gaps`` switches empty cells from
            0 to the neighbor/global-mean fill used for point clouds

    Returns:
        ElevationGrid with origin at (min X, max Y) and no sentinel

    Raises:
        EmptyDatasetError: No valid X Y Z triple was found

    Warns:
        DegradedRecoveryWarning: Points are not a regular grid, or the distinct X/Y
            lattice exceeds MAX_XYZ_CELLS; near-square layout used
    """
    options = options or DEFAULT_OPTIONS
    text = buffer if isinstance(buffer, str) else bytes(buffer).decode("utf-8", errors="replace")

    points = parse_xyz_points(text)
    if points.shape[0] == 0:
        raise EmptyDatasetError("No valid XYZ points found in file")

    xs, ys, zs = points[:, 0], points[:, 1], points[:, 2]
    unique_x = np.unique(xs).size
    unique_y = np.unique(ys).size

    degraded = False
    if unique_x > 1 and unique_y > 1 and unique_x * unique_y <= MAX_XYZ_CELLS:
        width, height = unique_x, unique_y
    else:
        width, height = near_square_shape(points.shape[0])
        degraded = True
        if unique_x > 1 and unique_y > 1:
            reason = f"{unique_x}x{unique_y} distinct X/Y exceeds {MAX_XYZ_CELLS} cells"
        else:
            reason = f"points do not span a 2D grid ({unique_x} distinct X, {unique_y} distinct Y)"
        message = f"XYZ {reason}; using {width}x{height} layout"
        warnings.warn(message, DegradedRecoveryWarning, stacklevel=2)
        logger.warning(message)

    min_x, max_x = float(xs.min()), float(xs.max())
    min_y, max_y = float(ys.min()), float(ys.max())
    range_x = (max_x - min_x) or 1.0
    range_y = (max_y - min_y) or 1.0

    cols = np.rint((xs - min_x) / range_x * (width - 1)).astype(np.int64)
    rows = np.rint((max_y - ys) / range_y * (height - 1)).astype(np.int64)
    np.clip(cols, 0, width - 1, out=cols)
    np.clip(rows, 0, height - 1, out=rows)

    fill_value = np.nan if options.xyz_fill_gaps else 0.0
    elevations = np.full((height, width), fill_value, dtype=np.float64)
    elevations[rows, cols] = zs

    if options.xyz_fill_gaps:
        elevations = fill_gaps(elevations, passes=options.gap_fill_passes)

    pixel_x = range_x / (width - 1) if width > 1 else 1.0
    pixel_y = range_y / (height - 1) if height > 1 else 1.0

    logger.info(f"Decoded {points.shape[0]} XYZ points into {width}x{height} grid")

    return ElevationGrid.from_array(
        elevations,
        no_data_value=None,
        pixel_size=(pixel_x, pixel_y),
        origin=(min_x, max_y),
        format_label="ASCII XYZ",
        degraded=degraded,
    )
