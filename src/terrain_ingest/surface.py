"""
Surface derivation: slope and aspect textures from an elevation grid.

Gradients use Horn's 3x3 finite-difference kernel on the source grid with
edge clamping. Every function here is pure; the source grid is only read,
and the same inputs always give bit-identical output.

Neighborhood layout (row 0 is north):

    z1 z2 z3
    z4 z5 z6
    z7 z8 z9
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from src.config import DEFAULT_COLOR_RAMP, FLAT_SLOPE_RADIANS, MAX_TEXTURE_SIZE, SLOPE_CLIP_DEGREES
from src.terrain_ingest.color_mapping import hue_wheel, ramp_colors, slope_grayscale
from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

MODES = ("slope", "aspect", "elevation")

NEUTRAL_COLOR = (128, 128, 128)
NODATA_COLOR = (20, 20, 30)
ASPECT_SATURATION = 0.65
ASPECT_LIGHTNESS = 0.5

HORN_DX = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64) / 8.0
HORN_DY = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64) / 8.0


@dataclass(frozen=True)
class SurfaceSample:
    """Slope and aspect of a single texel."""

    slope_radians: float
    aspect_degrees: float

    @property
    def slope_degrees(self) -> float:
        return float(np.degrees(self.slope_radians))

    @property
    def flat(self) -> bool:
        """Aspect is meaningless below this slope and renders neutral."""
        return self.slope_radians < FLAT_SLOPE_RADIANS


@dataclass(frozen=True)
class SurfaceField:
    """Per-texel slope (radians), aspect (degrees) and center elevation."""

    slope: np.ndarray
    aspect: np.ndarray
    elevation: np.ndarray
    valid: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.slope.shape

    def sample(self, row: int, col: int) -> SurfaceSample:
        return SurfaceSample(float(self.slope[row, col]), float(self.aspect[row, col]))


def slope_aspect(dzdx, dzdy):
    """
    Slope (radians) and aspect (degrees clockwise from north) from gradients.

    aspect = (atan2(-dz/dy, dz/dx) * 180/pi + 360) mod 360
    """
    slope = np.arctan(np.sqrt(np.square(dzdx) + np.square(dzdy)))
    aspect = np.mod(np.degrees(np.arctan2(-np.asarray(dzdy), dzdx)) + 360.0, 360.0)
    return slope, aspect


def horn_sample(window) -> SurfaceSample:
    """
    Evaluate Horn's method on one 3x3 window.

    Examples:
        >>> horn_sample(np.full((3, 3), 100.0)).flat
        True
    """
    z = np.asarray(window, dtype=np.float64).reshape(3, 3)
    dzdx = float(np.sum(z * HORN_DX))
    dzdy = float(np.sum(z * HORN_DY))
    slope, aspect = slope_aspect(dzdx, dzdy)
    return SurfaceSample(float(slope), float(aspect))


def texture_shape(grid: ElevationGrid, target_resolution: int) -> Tuple[int, int]:
    """(rows, cols) of the texture for a target resolution."""
    if int(target_resolution) < 1:
        raise ValueError(f"target_resolution must be >= 1, got {target_resolution}")
    return min(grid.height, int(target_resolution)), min(grid.width, int(target_resolution))


def _source_indices(size: int, tex_size: int) -> np.ndarray:
    # floor(i * size / tex_size) in exact integer arithmetic
    return (np.arange(tex_size, dtype=np.int64) * size) // tex_size


def _filled_elevations(grid: ElevationGrid):
    data = grid.to_array().astype(np.float64)
    valid = grid.valid_mask()
    if not np.all(valid):
        fill = data[valid].min() if np.any(valid) else 0.0
        data[~valid] = fill
    return data, valid


def compute_surface(grid: ElevationGrid, target_resolution: int = MAX_TEXTURE_SIZE) -> SurfaceField:
    """
    Horn slope/aspect sampled at texture resolution.

    Each texel maps to source cell (floor(y*H/th), floor(x*W/tw)); its 3x3
    neighborhood is edge-clamped. No-data cells take the minimum valid
    elevation before differencing. Gradients are in elevation units per
    source cell.

    Args:
        grid: Source elevation grid (not modified)
        target_resolution: Maximum texture size along either axis

    Returns:
        SurfaceField with arrays of shape texture_shape(grid, target_resolution)
    """
    tex_h, tex_w = texture_shape(grid, target_resolution)
    source, valid = _filled_elevations(grid)

    rows = _source_indices(grid.height, tex_h)
    cols = _source_indices(grid.width, tex_w)
    row_idx = [np.clip(rows + d, 0, grid.height - 1) for d in (-1, 0, 1)]
    col_idx = [np.clip(cols + d, 0, grid.width - 1) for d in (-1, 0, 1)]

    def z(i, j):
        return source[np.ix_(row_idx[i], col_idx[j])]

    z1, z2, z3 = z(0, 0), z(0, 1), z(0, 2)
    z4, z5, z6 = z(1, 0), z(1, 1), z(1, 2)
    z7, z8, z9 = z(2, 0), z(2, 1), z(2, 2)

    dzdx = ((z3 + 2 * z6 + z9) - (z1 + 2 * z4 + z7)) / 8.0
    dzdy = ((z7 + 2 * z8 + z9) - (z1 + 2 * z2 + z3)) / 8.0
    slope, aspect = slope_aspect(dzdx, dzdy)

    logger.debug(f"Surface field {tex_w}x{tex_h} from {grid.width}x{grid.height} grid")
    return SurfaceField(
        slope=slope,
        aspect=aspect,
        elevation=z5,
        valid=valid[np.ix_(rows, cols)],
    )


def derive_surface(
    grid: ElevationGrid,
    target_resolution: int = MAX_TEXTURE_SIZE,
    mode: str = "slope",
    ramp: str = DEFAULT_COLOR_RAMP,
) -> np.ndarray:
    """
    Render a slope, aspect or elevation texture.

    Args:
        grid: Source elevation grid (not modified)
        target_resolution: Maximum texture size along either axis
        mode: "slope" (grayscale, saturating at 60 degrees), "aspect" (hue
            wheel, neutral gray on flat ground) or "elevation" (color ramp)
        ramp: Color ramp name for elevation mode

    Returns:
        uint8 RGBA array with shape (rows, cols, 4)

    Raises:
        ValueError: Unknown mode/ramp or non-positive target resolution
    """
    if mode not in MODES:
        raise ValueError(f"Unknown surface mode '{mode}'. Choose from: {', '.join(MODES)}")

    field = compute_surface(grid, target_resolution)
    rows, cols = field.shape
    rgba = np.empty((rows, cols, 4), dtype=np.uint8)
    rgba[..., 3] = 255

    if mode == "slope":
        gray = slope_grayscale(np.degrees(field.slope), SLOPE_CLIP_DEGREES)
        rgba[..., 0] = gray
        rgba[..., 1] = gray
        rgba[..., 2] = gray
    elif mode == "aspect":
        rgba[..., :3] = hue_wheel(field.aspect, ASPECT_SATURATION, ASPECT_LIGHTNESS)
        rgba[field.slope < FLAT_SLOPE_RADIANS, :3] = NEUTRAL_COLOR
    else:
        low, high = grid.elevation_range()
        span = (high - low) or 1.0
        rgba[..., :3] = ramp_colors((field.elevation - low) / span, ramp)

    rgba[~field.valid, :3] = NODATA_COLOR

    logger.info(f"Rendered {mode} texture {cols}x{rows}")
    return rgba
