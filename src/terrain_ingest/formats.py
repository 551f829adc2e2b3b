"""
Format registry for elevation files.

Maps a file name to a FormatDescriptor by longest suffix match. The table
also lists formats that are recognized but deliberately not decoded; those
carry guidance on how to convert them into something that is.
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Tuple

_CONVERT_HINT = "Try converting to GeoTIFF using GDAL (gdal_translate) or QGIS."


@dataclass(frozen=True)
class FormatDescriptor:
    """Static description of one file format."""

    id: str
    display_name: str
    extensions: Tuple[str, ...]
    supported: bool
    guidance_text: str = ""
    description: str = ""


def _unsupported(fmt_id, name, extensions, description):
    guidance = (
        f"{name} is a recognized GIS format but cannot be decoded here. "
        f"{description}. {_CONVERT_HINT}"
    )
    return FormatDescriptor(fmt_id, name, extensions, False, guidance, description)


FORMATS: Tuple[FormatDescriptor, ...] = (
    FormatDescriptor("geotiff", "GeoTIFF", (".tif", ".tiff"), True,
                     description="Industry standard georeferenced raster"),
    FormatDescriptor("cog", "Cloud Optimized GeoTIFF", (".cog",), True,
                     description="Streamable GeoTIFF for cloud hosting"),
    FormatDescriptor("erdas", "ERDAS Imagine", (".img",), True,
                     description="Remote sensing raster format"),
    FormatDescriptor("xyz", "ASCII XYZ", (".xyz",), True,
                     description="Simple text elevation grid (X Y Z)"),
    FormatDescriptor("usgsdem", "USGS DEM", (".dem",), True,
                     description="USGS digital elevation model"),
    FormatDescriptor("dted", "DTED", (".dt0", ".dt1", ".dt2"), True,
                     description="Digital Terrain Elevation Data"),
    FormatDescriptor("netcdf", "NetCDF", (".nc",), True,
                     description="Scientific multidimensional arrays"),
    FormatDescriptor("worldfile", "Image + World File", (".jpg", ".jpeg", ".png", ".bmp", ".gif"), True,
                     description="Standard image with georeferencing sidecar"),
    FormatDescriptor("las", "LAS/LAZ", (".las", ".laz"), True,
                     description="LiDAR point cloud (gridded to DEM)"),
    _unsupported("jp2", "JPEG 2000", (".jp2", ".jpx"),
                 "Lossless compression with geospatial metadata"),
    _unsupported("gpkg", "GeoPackage", (".gpkg",),
                 "SQLite-based vector/raster container"),
    _unsupported("ecw", "ECW", (".ecw",),
                 "Enhanced Compression Wavelet (proprietary)"),
    _unsupported("mrsid", "MrSID", (".sid",),
                 "LizardTech multi-resolution (proprietary)"),
    _unsupported("hdf", "HDF", (".hdf", ".hdf5", ".he5", ".h5"),
                 "Hierarchical Data Format (NASA)"),
)

UNKNOWN_FORMAT = FormatDescriptor(
    "unknown",
    "Unknown",
    (),
    False,
    f"Unrecognized file extension. {_CONVERT_HINT}",
    "Unrecognized format",
)

# Sidecar extensions keyed by image extension; ".wld" applies to all
_WORLD_FILE_EXTENSIONS = {
    ".jpg": (".jgw", ".jpgw"),
    ".jpeg": (".jgw", ".jpegw"),
    ".png": (".pgw", ".pngw"),
    ".bmp": (".bpw", ".bmpw"),
    ".gif": (".gfw", ".gifw"),
}


def detect_format(file_name: str) -> FormatDescriptor:
    """
    Classify a file name by its longest matching extension.

    Args:
        file_name: Any string; only its (case-insensitive) suffix matters

    Returns:
        FormatDescriptor for the match, or UNKNOWN_FORMAT
    """
    lower = str(file_name).lower()
    best = UNKNOWN_FORMAT
    best_length = 0
    for fmt in FORMATS:
        for ext in fmt.extensions:
            if len(ext) > best_length and lower.endswith(ext):
                best = fmt
                best_length = len(ext)
    return best


def all_extensions() -> List[str]:
    """Every extension in the table, supported or not."""
    return [ext for fmt in FORMATS for ext in fmt.extensions]


def world_file_candidates(image_name: str) -> List[str]:
    """
    Conventional world-file names for an image, most specific first.

    Examples:
        >>> world_file_candidates("scan.png")
        ['scan.pgw', 'scan.pngw', 'scan.wld']
    """
    path = PurePath(image_name)
    suffixes = _WORLD_FILE_EXTENSIONS.get(path.suffix.lower(), ())
    return [str(path.with_suffix(ext)) for ext in suffixes + (".wld",)]
