"""
USGS DEM (native ASCII) decoder.

Reads the 1024-byte type A header at fixed offsets, then streams numeric
tokens from the remaining records into a row-major grid. Files whose header
lacks usable row/column counts are reshaped into a near-square grid instead
of being rejected.
"""

import logging
import re
import warnings
from typing import List, Optional, Tuple

import numpy as np

from src.config import DEFAULT_NODATA
from src.terrain_ingest.byteview import AsciiField, BufferLike, ByteView, parse_float, parse_int
from src.terrain_ingest.coords import parse_packed_dms
from src.terrain_ingest.errors import DegradedRecoveryWarning, EmptyDatasetError, StructuralError
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.resample import near_square_shape

logger = logging.getLogger(__name__)

HEADER_LENGTH = 1024

NAME = AsciiField("name", 0, 40)
DEM_LEVEL = AsciiField("dem_level", 144, 6)
PATTERN_CODE = AsciiField("pattern_code", 150, 6)
PLANIMETRIC_CODE = AsciiField("planimetric_code", 156, 6)
CORNERS = AsciiField("corners", 546, 192)
RESOLUTION_X = AsciiField("resolution_x", 816, 12)
RESOLUTION_Y = AsciiField("resolution_y", 828, 12)
RESOLUTION_Z = AsciiField("resolution_z", 840, 12)
ROWS_COLUMNS = AsciiField("rows_columns", 852, 13)

_NUMBER = re.compile(r"-?\d+(?:\.\d*)?(?:[DdEe][+-]?\d+)?")
_CORNER_TOKEN = re.compile(r"\d{2,3}\d{2}\d{2}(?:\.\d*)?[NSEWnsew]|-?\d+(?:\.\d*)?(?:[DdEe][+-]?\d+)?")


def _numeric_tokens(text: str) -> List[float]:
    values = []
    for token in _NUMBER.findall(text):
        value = parse_float(token)
        if value is not None:
            values.append(value)
    return values


def parse_corners(view: ByteView) -> Optional[Tuple[float, float, float, float]]:
    """
    Extract the (min_x, min_y, max_x, max_y) footprint from the corner block.

    Corners are x/y pairs in decimal, Fortran ``D`` exponent, or packed
    DMS-with-hemisphere form. At least two pairs are required.
    """
    values = []
    for token in _CORNER_TOKEN.findall(CORNERS.text(view)):
        value = parse_packed_dms(token)
        if value is None:
            value = parse_float(token)
        if value is None:
            return None
        values.append(value)

    if len(values) < 4:
        return None

    xs = values[0:8:2]
    ys = values[1:8:2]
    return (min(xs), min(ys), max(xs), max(ys))


def _crs_hint(planimetric_code: Optional[int]) -> Optional[str]:
    if planimetric_code == 1:
        return "UTM"
    if planimetric_code == 0:
        return "EPSG:4326"
    return None


def _reshape_tokens(text: str) -> ElevationGrid:
    values = _numeric_tokens(text)
    if not values:
        raise EmptyDatasetError("No elevation values found in DEM file")

    width, height = near_square_shape(len(values))
    elevations = np.zeros(width * height, dtype=np.float32)
    elevations[: len(values)] = values

    message = (
        f"USGS DEM header has no usable row/column counts; reshaped {len(values)} "
        f"values into a {width}x{height} grid"
    )
    warnings.warn(message, DegradedRecoveryWarning, stacklevel=3)
    logger.warning(message)

    return ElevationGrid(
        width=width,
        height=height,
        elevations=elevations,
        no_data_value=DEFAULT_NODATA,
        format_label="USGS DEM (text)",
        degraded=True,
    )


def decode_usgs_dem(buffer: BufferLike) -> ElevationGrid:
    """
    Decode a USGS native-format DEM.

    Args:
        buffer: Complete file contents (ASCII)

    Returns:
        ElevationGrid with sentinel -32767

    Raises:
        StructuralError: The 40-byte name field is blank
        EmptyDatasetError: Fallback parsing found no numbers

    Warns:
        DegradedRecoveryWarning: Row/column counts missing; near-square reshape used
    """
    view = ByteView(buffer)

    name = NAME.text(view).strip()
    if not name:
        raise StructuralError("Invalid USGS DEM: could not read header (blank name field)")

    text = view.ascii(0, len(view))
    dims = [parse_int(token) for token in ROWS_COLUMNS.tokens(view)] + [None, None]
    num_rows, num_cols = dims[0] or 0, dims[1] or 0

    if num_rows <= 0 or num_cols <= 0:
        # Short files have no body past the header; scan after the name instead
        body = text[HEADER_LENGTH:] if len(text) > HEADER_LENGTH else text[NAME.end:]
        return _reshape_tokens(body)

    dem_level = DEM_LEVEL.int(view) or 1
    pattern_code = PATTERN_CODE.int(view) or 1
    planimetric_code = PLANIMETRIC_CODE.int(view)

    origin_x = origin_y = 0.0
    corners = parse_corners(view)
    if corners is not None:
        min_x, _min_y, _max_x, max_y = corners
        origin_x, origin_y = min_x, max_y
    else:
        logger.debug("USGS DEM corner coordinates not parseable; origin left at (0, 0)")

    res_x = RESOLUTION_X.float(view) or 1.0
    res_y = RESOLUTION_Y.float(view) or 1.0
    res_z = RESOLUTION_Z.float(view)

    elevations = np.zeros(num_rows * num_cols, dtype=np.float32)
    values = _numeric_tokens(text[HEADER_LENGTH:])
    count = min(len(values), elevations.size)
    elevations[:count] = values[:count]
    if len(values) > elevations.size:
        logger.debug(f"Dropped {len(values) - elevations.size} tokens beyond grid capacity")
    elif count < elevations.size:
        logger.debug(f"Only {count} of {elevations.size} cells present; remainder left at 0")

    grid = ElevationGrid(
        width=num_cols,
        height=num_rows,
        elevations=elevations,
        no_data_value=DEFAULT_NODATA,
        pixel_size=(abs(res_x), abs(res_y)),
        origin=(origin_x, origin_y),
        crs_hint=_crs_hint(planimetric_code),
        format_label=f"USGS DEM (Level {dem_level})",
    )

    logger.info(
        f"Decoded USGS DEM '{name}': {num_cols}x{num_rows}, level {dem_level}, "
        f"pattern {pattern_code}, z resolution {res_z}"
    )
    return grid
