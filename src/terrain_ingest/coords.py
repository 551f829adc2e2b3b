"""Coordinate parsing helpers shared by the fixed-layout decoders."""

import logging
import re
from typing import Optional

from src.terrain_ingest.byteview import parse_float

logger = logging.getLogger(__name__)

# DDDMMSS[.ss]H or DDMMSS[.ss]H with a hemisphere letter
_PACKED_DMS = re.compile(r"^(\d{2,3})(\d{2})(\d{2}(?:\.\d*)?)([NSEW])$", re.IGNORECASE)


def parse_packed_dms(text: str) -> Optional[float]:
    """
    Parse a packed degrees-minutes-seconds string with hemisphere letter.

    Args:
        text: e.g. "0750000W", "400130.5N"

    Returns:
        Signed decimal degrees (south and west negative), or None when the
        text is not in packed form

    Examples:
        >>> parse_packed_dms("0750000W")
        -75.0
        >>> parse_packed_dms("0403000N")
        40.5
    """
    match = _PACKED_DMS.match(text.strip())
    if match is None:
        return None
    degrees = int(match.group(1))
    minutes = int(match.group(2))
    seconds = float(match.group(3))
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if match.group(4).upper() in ("S", "W"):
        value = -value
    return value


def parse_sexagesimal(text: str, default: float = 0.0) -> float:
    """
    Parse a coordinate that is either packed DMS or a plain decimal.

    Falls back to ``default`` (with a warning) when neither form parses.
    """
    value = parse_packed_dms(text)
    if value is not None:
        return value
    value = parse_float(text)
    if value is not None:
        return value
    logger.warning(f"Could not parse coordinate {text!r}; using {default}")
    return default


def is_geographic_extent(min_x: float, min_y: float, max_x: float, max_y: float) -> bool:
    """True when a bounding box fits within longitude/latitude degree ranges."""
    return min_x >= -180 and max_x <= 180 and min_y >= -90 and max_y <= 90
