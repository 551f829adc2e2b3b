"""
Canonical elevation grid.

Every decoder converges on ElevationGrid: a north-up, row-major array of
heights plus the georeferencing needed to place it. Grids are immutable;
the elevation array is flagged read-only and consumers derive new arrays
instead of editing it.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

import numpy as np
from rasterio import Affine

from src.config import DEFAULT_NODATA

logger = logging.getLogger(__name__)


class PixelSize(NamedTuple):
    x: float
    y: float


class Origin(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True, eq=False)
class ElevationGrid:
    """Regularly spaced elevation raster.

    Grids compare and hash by identity; compare ``to_array()`` for contents.

    Attributes:
        width: Number of columns
        height: Number of rows (row 0 is the northern edge)
        elevations: Flat row-major float32 array of length width * height
        no_data_value: Sentinel meaning "no measurement", or None
        pixel_size: Cell size magnitudes in CRS units
        origin: Upper-left corner in CRS units
        crs_hint: Best-effort CRS label (e.g. "EPSG:4326", "UTM"), or None
        format_label: Human-readable source description
        degraded: True when dimensions were inferred by a fallback
        pseudo_elevation: True when values are a luminance surrogate
    """

    width: int
    height: int
    elevations: np.ndarray
    no_data_value: Optional[float] = None
    pixel_size: PixelSize = PixelSize(1.0, 1.0)
    origin: Origin = Origin(0.0, 0.0)
    crs_hint: Optional[str] = None
    format_label: str = ""
    degraded: bool = False
    pseudo_elevation: bool = False

    def __post_init__(self):
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.width}x{self.height}")

        elevations = np.asarray(self.elevations, dtype=np.float32).reshape(-1)
        if elevations.size != self.width * self.height:
            raise ValueError(
                f"Elevation array has {elevations.size} values, expected "
                f"{self.width}x{self.height}={self.width * self.height}"
            )

        pixel_size = PixelSize(float(self.pixel_size[0]), float(self.pixel_size[1]))
        if pixel_size.x == 0 or pixel_size.y == 0:
            raise ValueError(f"Pixel size must be nonzero, got {pixel_size}")

        no_data = self.no_data_value
        if no_data is not None and not np.isfinite(no_data):
            # NaN/inf sentinels cannot be compared for equality downstream
            no_data = None

        # Private copy so the caller's array is never frozen or edited
        if elevations.flags.writeable:
            elevations = elevations.copy()

        non_finite = ~np.isfinite(elevations)
        if np.any(non_finite):
            if no_data is None:
                no_data = DEFAULT_NODATA
            if not elevations.flags.writeable:
                elevations = elevations.copy()
            elevations[non_finite] = no_data
            logger.debug(f"Replaced {int(non_finite.sum())} non-finite values with {no_data}")

        elevations.flags.writeable = False

        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        object.__setattr__(self, "elevations", elevations)
        object.__setattr__(self, "no_data_value", None if no_data is None else float(no_data))
        object.__setattr__(self, "pixel_size", pixel_size)
        object.__setattr__(self, "origin", Origin(float(self.origin[0]), float(self.origin[1])))

    @classmethod
    def from_array(cls, data: np.ndarray, **kwargs) -> "ElevationGrid":
        """Build a grid from a 2D (rows, cols) array."""
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {data.shape}")
        height, width = data.shape
        return cls(width=width, height=height, elevations=data.reshape(-1), **kwargs)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def to_array(self) -> np.ndarray:
        """Read-only 2D view with shape (height, width)."""
        return self.elevations.reshape(self.height, self.width)

    def valid_mask(self) -> np.ndarray:
        """Boolean 2D mask of cells holding a measurement."""
        data = self.to_array()
        if self.no_data_value is None:
            return np.ones(data.shape, dtype=bool)
        return data != np.float32(self.no_data_value)

    def elevation_range(self) -> Tuple[float, float]:
        """Min/max over valid cells; (0, 1) when nothing is valid."""
        mask = self.valid_mask()
        if not np.any(mask):
            return (0.0, 1.0)
        values = self.to_array()[mask]
        return (float(values.min()), float(values.max()))

    @property
    def transform(self) -> Affine:
        """Affine transform from (col, row) to CRS coordinates."""
        return Affine(
            self.pixel_size.x, 0.0, self.origin.x, 0.0, -abs(self.pixel_size.y), self.origin.y
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the grid footprint."""
        min_x = self.origin.x
        max_x = self.origin.x + self.width * self.pixel_size.x
        max_y = self.origin.y
        min_y = self.origin.y - self.height * abs(self.pixel_size.y)
        return (min(min_x, max_x), min_y, max(min_x, max_x), max_y)

    def describe(self) -> dict:
        """JSON-friendly metadata summary."""
        low, high = self.elevation_range()
        return {
            "format": self.format_label,
            "width": self.width,
            "height": self.height,
            "pixel_size": {"x": self.pixel_size.x, "y": self.pixel_size.y},
            "origin": {"x": self.origin.x, "y": self.origin.y},
            "crs": self.crs_hint,
            "no_data_value": self.no_data_value,
            "elevation_range": {"min": low, "max": high},
            "degraded": self.degraded,
            "pseudo_elevation": self.pseudo_elevation,
        }
