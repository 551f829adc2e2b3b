"""Decode-time options threaded through every decoder call."""

from dataclasses import dataclass

from src.config import (
    GAP_FILL_PASSES,
    LAZ_CHUNK_SIZE,
    MAX_GRID_RESOLUTION,
    MAX_POINTS,
    MIN_GRID_RESOLUTION,
)


@dataclass(frozen=True)
class DecodeOptions:
    """Tunable limits for decoding."""

    max_points: int = MAX_POINTS
    """Maximum point-cloud points retained; larger clouds are stride sampled."""

    min_grid_resolution: int = MIN_GRID_RESOLUTION
    """Lower bound on the larger side of a resampled point-cloud grid."""

    max_grid_resolution: int = MAX_GRID_RESOLUTION
    """Upper bound on the larger side of a resampled point-cloud grid."""

    gap_fill_passes: int = GAP_FILL_PASSES
    """Neighbor-averaging passes before the global-mean fallback."""

    xyz_fill_gaps: bool = False
    """Apply point-cloud gap filling to XYZ grids (default leaves zeros)."""

    chunk_size: int = LAZ_CHUNK_SIZE
    """Points per chunk when streaming compressed LAZ data."""

    show_progress: bool = False
    """Show tqdm progress bars for long decodes."""

    def __post_init__(self):
        if self.max_points < 1:
            raise ValueError(f"max_points must be >= 1, got {self.max_points}")
        if not 1 <= self.min_grid_resolution <= self.max_grid_resolution:
            raise ValueError(
                "Grid resolution bounds must satisfy 1 <= min <= max, got "
                f"{self.min_grid_resolution}..{self.max_grid_resolution}"
            )
        if self.gap_fill_passes < 0:
            raise ValueError(f"gap_fill_passes must be >= 0, got {self.gap_fill_passes}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")


DEFAULT_OPTIONS = DecodeOptions()
