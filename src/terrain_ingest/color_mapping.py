"""
Color mapping functions for terrain textures.

This module contains the named elevation color ramps and the helpers that
turn normalized values, slopes and aspects into RGB.
"""

import logging
from typing import Dict

import numpy as np
from matplotlib.colors import LinearSegmentedColormap, hsv_to_rgb

logger = logging.getLogger(__name__)


# =============================================================================
# Elevation Ramps
# =============================================================================

# Multi-stop ramps as (position, (r, g, b)) in 0-255
_RAMP_STOPS = {
    "terrain": [
        (0.00, (22, 82, 44)),     # Lowland: deep green
        (0.15, (60, 140, 60)),
        (0.30, (140, 180, 60)),
        (0.45, (200, 190, 80)),   # Foothills: ochre
        (0.55, (180, 140, 70)),
        (0.70, (150, 100, 60)),
        (0.82, (130, 80, 50)),    # Rock: brown
        (0.92, (200, 200, 210)),
        (1.00, (255, 255, 255)),  # Snow
    ],
    "viridis": [
        (0.00, (68, 1, 84)),
        (0.25, (59, 82, 139)),
        (0.50, (33, 145, 140)),
        (0.75, (94, 201, 98)),
        (1.00, (253, 231, 37)),
    ],
    "magma": [
        (0.00, (0, 0, 4)),
        (0.25, (81, 18, 124)),
        (0.50, (183, 55, 121)),
        (0.75, (254, 159, 109)),
        (1.00, (252, 253, 191)),
    ],
    "arctic": [
        (0.00, (10, 30, 60)),
        (0.20, (20, 80, 130)),
        (0.40, (60, 150, 180)),
        (0.60, (140, 200, 220)),
        (0.80, (210, 230, 240)),
        (1.00, (250, 252, 255)),
    ],
    "desert": [
        (0.00, (60, 40, 20)),
        (0.20, (120, 80, 40)),
        (0.40, (180, 140, 80)),
        (0.60, (210, 180, 120)),
        (0.80, (230, 210, 170)),
        (1.00, (250, 240, 220)),
    ],
}


def _build_ramp(name, stops):
    return LinearSegmentedColormap.from_list(
        f"ingest_{name}", [(pos, tuple(c / 255.0 for c in rgb)) for pos, rgb in stops], N=256
    )


# Not registered with matplotlib: "terrain", "viridis" and "magma" would
# shadow the built-in colormaps of the same name.
COLOR_RAMPS: Dict[str, LinearSegmentedColormap] = {
    name: _build_ramp(name, stops) for name, stops in _RAMP_STOPS.items()
}


def get_ramp(name: str) -> LinearSegmentedColormap:
    """Look up a named ramp; raises ValueError listing the valid names."""
    try:
        return COLOR_RAMPS[name]
    except KeyError:
        raise ValueError(f"Unknown color ramp '{name}'. Choose from: {', '.join(COLOR_RAMPS)}") from None


def ramp_colors(normalized: np.ndarray, ramp_name: str = "terrain") -> np.ndarray:
    """
    Map values in [0, 1] through a named ramp.

    Args:
        normalized: Array of values; clipped to [0, 1]
        ramp_name: Key of COLOR_RAMPS

    Returns:
        uint8 RGB array with shape (*normalized.shape, 3)
    """
    cmap = get_ramp(ramp_name)
    rgba = cmap(np.clip(normalized, 0.0, 1.0))
    return np.round(rgba[..., :3] * 255).astype(np.uint8)


def slope_grayscale(slope_degrees: np.ndarray, clip_degrees: float = 60.0) -> np.ndarray:
    """Gray level 0-255 proportional to slope, saturating at clip_degrees."""
    fraction = np.clip(slope_degrees / clip_degrees, 0.0, 1.0)
    return np.round(fraction * 255).astype(np.uint8)


def hue_wheel(hue_degrees: np.ndarray, saturation: float = 0.65, lightness: float = 0.5) -> np.ndarray:
    """
    Convert hue angles at fixed HSL saturation/lightness to RGB.

    Args:
        hue_degrees: Hue angles in degrees (any range; wrapped to [0, 360))
        saturation: HSL saturation in [0, 1]
        lightness: HSL lightness in [0, 1]

    Returns:
        uint8 RGB array with shape (*hue_degrees.shape, 3)
    """
    # HSL -> HSV at constant S/L, then matplotlib's vectorized HSV -> RGB
    value = lightness + saturation * min(lightness, 1.0 - lightness)
    hsv_saturation = 0.0 if value == 0 else 2.0 * (1.0 - lightness / value)

    hsv = np.empty(np.shape(hue_degrees) + (3,), dtype=np.float64)
    hsv[..., 0] = np.mod(hue_degrees, 360.0) / 360.0
    hsv[..., 1] = hsv_saturation
    hsv[..., 2] = value
    return np.round(hsv_to_rgb(hsv) * 255).astype(np.uint8)
