"""
DTED (Digital Terrain Elevation Data) decoder.

Layout read here:
    UHL block (80 bytes)  - signature, origin, intervals, counts
    DSI block (648 bytes) - data set identification (not interpreted)
    ACC block (2700 bytes) - accuracy description (not interpreted)
    Data records, one per longitude line (column), each:
        8-byte record header (0xAA sentinel, block/lon/lat counts)
        latitude points, south to north, as sign-magnitude int16 big-endian
        4-byte checksum
"""

import logging
import re
from typing import Optional

import numpy as np

from src.config import DEFAULT_NODATA
from src.terrain_ingest.byteview import AsciiField, BufferLike, ByteView
from src.terrain_ingest.coords import parse_sexagesimal
from src.terrain_ingest.errors import StructuralError
from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

UHL_LENGTH = 80
DSI_LENGTH = 648
ACC_LENGTH = 2700
DSI_OFFSET = UHL_LENGTH
ACC_OFFSET = DSI_OFFSET + DSI_LENGTH
DATA_OFFSET = ACC_OFFSET + ACC_LENGTH

RECORD_HEADER_LENGTH = 8
RECORD_CHECKSUM_LENGTH = 4
RECORD_SENTINEL = 0xAA

SIGNATURE = AsciiField("signature", 0, 3)
ORIGIN_LON = AsciiField("origin_longitude", 4, 8)
ORIGIN_LAT = AsciiField("origin_latitude", 12, 8)
LON_INTERVAL = AsciiField("longitude_interval", 20, 4)
LAT_INTERVAL = AsciiField("latitude_interval", 24, 4)
NUM_LON_LINES = AsciiField("longitude_lines", 47, 4)
NUM_LAT_POINTS = AsciiField("latitude_points", 51, 4)
DSI_SENTINEL = AsciiField("dsi_sentinel", DSI_OFFSET, 3)
ACC_SENTINEL = AsciiField("acc_sentinel", ACC_OFFSET, 3)

_LEVEL_PATTERN = re.compile(r"\.dt(\d)$", re.IGNORECASE)


def decode_sign_magnitude(raw: np.ndarray) -> np.ndarray:
    """
    Decode 16-bit sign-magnitude words.

    The top bit is a negation flag over the remaining 15-bit magnitude, so
    0x8064 is -100 and 0xFFFF is -32767 (the DTED void value).

    Args:
        raw: Unsigned 16-bit values (any byte order already resolved)

    Returns:
        int32 array of signed values
    """
    raw = np.asarray(raw, dtype=np.uint16)
    magnitude = (raw & 0x7FFF).astype(np.int32)
    return np.where(raw & 0x8000, -magnitude, magnitude)


def _dted_level(file_name: Optional[str]) -> str:
    if not file_name:
        return "?"
    match = _LEVEL_PATTERN.search(file_name)
    return match.group(1) if match else "?"


def decode_dted(buffer: BufferLike, file_name: Optional[str] = None) -> ElevationGrid:
    """
    Decode a DTED level 0/1/2 file.

    Args:
        buffer: Complete file contents
        file_name: Optional name; the ``.dtN`` extension sets the level label

    Returns:
        ElevationGrid in geographic degrees, north row first

    Raises:
        StructuralError: Missing UHL signature, truncated headers, or
            invalid grid dimensions
    """
    view = ByteView(buffer)

    if SIGNATURE.text(view) != "UHL":
        raise StructuralError("Invalid DTED: missing UHL header signature")

    if len(view) < DATA_OFFSET + RECORD_HEADER_LENGTH:
        raise StructuralError(
            f"File too small to be a valid DTED file ({len(view)} bytes, "
            f"headers alone need {DATA_OFFSET})"
        )

    num_lon_lines = NUM_LON_LINES.int(view)
    num_lat_points = NUM_LAT_POINTS.int(view)
    if not num_lon_lines or not num_lat_points or num_lon_lines <= 0 or num_lat_points <= 0:
        raise StructuralError(
            f"Invalid DTED: could not parse grid dimensions "
            f"({NUM_LON_LINES.text(view)!r} x {NUM_LAT_POINTS.text(view)!r})"
        )

    if DSI_SENTINEL.text(view) != "DSI":
        logger.warning("DTED DSI block sentinel not found at expected offset; reading fixed layout anyway")
    if ACC_SENTINEL.text(view) != "ACC":
        logger.warning("DTED ACC block sentinel not found at expected offset; reading fixed layout anyway")

    origin_lon = parse_sexagesimal(ORIGIN_LON.text(view))
    origin_lat = parse_sexagesimal(ORIGIN_LAT.text(view))
    lon_interval = (LON_INTERVAL.int(view) or 0) / 10.0
    lat_interval = (LAT_INTERVAL.int(view) or 0) / 10.0

    width = num_lon_lines
    height = num_lat_points
    elevations = np.full((height, width), DEFAULT_NODATA, dtype=np.float32)

    record_size = RECORD_HEADER_LENGTH + height * 2 + RECORD_CHECKSUM_LENGTH
    raw_view = view.raw
    columns_read = 0
    bad_sentinels = 0

    for col in range(width):
        record_start = DATA_OFFSET + col * record_size
        values_start = record_start + RECORD_HEADER_LENGTH
        if values_start + height * 2 > len(view):
            break

        if raw_view[record_start] != RECORD_SENTINEL:
            bad_sentinels += 1

        raw = np.frombuffer(raw_view, dtype=">u2", count=height, offset=values_start)
        # Stored south to north; canonical rows run north to south
        elevations[::-1, col] = decode_sign_magnitude(raw)
        columns_read += 1

    if columns_read < width:
        logger.warning(f"DTED data truncated: read {columns_read} of {width} longitude lines")
    if bad_sentinels:
        logger.debug(f"{bad_sentinels} DTED records lacked the 0xAA sentinel")

    pixel_x = (lon_interval / 3600.0) or 1.0
    pixel_y = (lat_interval / 3600.0) or 1.0
    level = _dted_level(file_name)

    grid = ElevationGrid.from_array(
        elevations,
        no_data_value=DEFAULT_NODATA,
        pixel_size=(pixel_x, pixel_y),
        origin=(origin_lon, origin_lat + (height - 1) * pixel_y),
        crs_hint="EPSG:4326",
        format_label=f"DTED Level {level}",
    )

    logger.info(f"Decoded DTED level {level}: {width}x{height}, origin ({origin_lon:.4f}, {origin_lat:.4f})")
    return grid
