"""
Image + world-file decoder.

Plain images carry no heights, so this decoder produces a luminance
surrogate (ITU-R BT.601 weights) as a coarse pseudo-elevation. Grids from
this path are flagged ``pseudo_elevation`` and must not be presented as a
measured DEM. The optional six-line world file supplies georeferencing.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.terrain_ingest.byteview import BufferLike, parse_float
from src.terrain_ingest.errors import StructuralError
from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

LUMINANCE_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass(frozen=True)
class WorldFile:
    """Six-parameter affine georeference (rotation terms are kept but unused)."""

    pixel_size_x: float = 1.0
    rotation_y: float = 0.0
    rotation_x: float = 0.0
    pixel_size_y: float = 1.0
    origin_x: float = 0.0
    origin_y: float = 0.0


def parse_world_file(content: Union[str, bytes, None]) -> Optional[WorldFile]:
    """
    Parse world-file text.

    Lines are ``A D B E C F``: pixel width, two rotation terms, pixel
    height (usually negative), then the upper-left X/Y. Returns None when
    fewer than six non-blank lines are present.
    """
    if content is None:
        return None
    if isinstance(content, (bytes, bytearray, memoryview)):
        content = bytes(content).decode("utf-8", errors="replace")

    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if len(lines) < 6:
        logger.warning(f"World file has {len(lines)} lines, expected 6; ignoring it")
        return None

    values = [parse_float(line) for line in lines[:6]]
    return WorldFile(
        pixel_size_x=abs(values[0] or 0.0) or 1.0,
        rotation_y=values[1] or 0.0,
        rotation_x=values[2] or 0.0,
        pixel_size_y=abs(values[3] or 0.0) or 1.0,
        origin_x=values[4] or 0.0,
        origin_y=values[5] or 0.0,
    )


def luminance(rgb: np.ndarray) -> np.ndarray:
    """0.299 R + 0.587 G + 0.114 B for an (H, W, 3) array."""
    return rgb[..., :3].astype(np.float64) @ LUMINANCE_WEIGHTS


def decode_image_with_world_file(
    buffer: BufferLike,
    world_file: Union[str, bytes, None] = None,
) -> ElevationGrid:
    """
    Decode an image into a luminance pseudo-elevation grid.

    Args:
        buffer: Encoded image (PNG, JPEG, BMP, GIF)
        world_file: Optional world-file text

    Returns:
        ElevationGrid flagged ``pseudo_elevation``

    Raises:
        StructuralError: The image cannot be decoded or exceeds the Pillow pixel limit
    """
    try:
        with Image.open(io.BytesIO(bytes(buffer))) as image:
            rgb = np.asarray(image.convert("RGB"))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise StructuralError(f"Could not decode image: {e}") from e

    height, width = rgb.shape[:2]
    surrogate = luminance(rgb)

    georef = parse_world_file(world_file)
    label = "Image + World File (luminance approximation)" if georef else "Image (luminance approximation)"
    georef = georef or WorldFile()

    logger.info(f"Decoded {width}x{height} image as luminance pseudo-elevation")
    logger.warning("Image luminance is an approximation, not measured elevation")

    return ElevationGrid.from_array(
        surrogate,
        no_data_value=None,
        pixel_size=(georef.pixel_size_x, georef.pixel_size_y),
        origin=(georef.origin_x, georef.origin_y),
        format_label=label,
        pseudo_elevation=True,
    )
