"""
Elevation ingestion package.

Core functionality:
- decode() / decode_file() for GeoTIFF, ERDAS, DTED, USGS DEM, NetCDF, LAS/LAZ,
  ASCII XYZ and georeferenced images
- ElevationGrid, the canonical north-up raster every decoder returns
- derive_surface() for slope, aspect and elevation-ramp textures
- QA checks, elevation profiles and a synthetic sample terrain
"""

from .errors import (
    DecodeError,
    DegradedRecoveryWarning,
    EmptyDatasetError,
    StructuralError,
    UnsupportedFormatError,
)
from .formats import FormatDescriptor, detect_format
from .grid import ElevationGrid
from .loader import decode, decode_file, decode_files
from .options import DecodeOptions
from .profile import sample_profile
from .qa import build_report, run_all_checks
from .sample_terrain import generate_sample_terrain
from .surface import compute_surface, derive_surface, horn_sample

__all__ = [
    "DecodeError",
    "DegradedRecoveryWarning",
    "EmptyDatasetError",
    "StructuralError",
    "UnsupportedFormatError",
    "FormatDescriptor",
    "detect_format",
    "ElevationGrid",
    "decode",
    "decode_file",
    "decode_files",
    "DecodeOptions",
    "sample_profile",
    "build_report",
    "run_all_checks",
    "generate_sample_terrain",
    "compute_surface",
    "derive_surface",
    "horn_sample",
]
