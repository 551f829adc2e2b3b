"""
GeoTIFF, Cloud Optimized GeoTIFF and ERDAS Imagine decoder.

Reads band 1 of any single-file raster GDAL can open from memory, via
rasterio's MemoryFile.
"""

import logging

import numpy as np
import rasterio
from rasterio.io import MemoryFile

from src.terrain_ingest.byteview import BufferLike
from src.terrain_ingest.errors import EmptyDatasetError, StructuralError
from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

_ELEVATION_DTYPES = ("int8", "uint8", "int16", "uint16", "int32", "uint32", "float32", "float64")


def _crs_label(crs):
    if crs is None:
        return None
    epsg = crs.to_epsg()
    if epsg is not None:
        return f"EPSG:{epsg}"
    return crs.to_string() or None


def decode_geotiff(buffer: BufferLike, format_name: str = "GeoTIFF") -> ElevationGrid:
    """
    Decode the first band of a georeferenced raster.

    Args:
        buffer: Complete file contents
        format_name: Label prefix for the resulting grid

    Returns:
        ElevationGrid with the dataset's nodata value and CRS

    Raises:
        StructuralError: GDAL cannot open the buffer
        EmptyDatasetError: The raster has no bands
    """
    source = buffer if isinstance(buffer, bytes) else bytes(buffer)

    try:
        with MemoryFile(source) as memfile:
            with memfile.open() as ds:
                if ds.count == 0:
                    raise EmptyDatasetError("Raster contains no bands")
                if ds.dtypes[0] not in _ELEVATION_DTYPES:
                    logger.warning(f"Unexpected data type in raster: {ds.dtypes[0]}")

                data = ds.read(1).astype(np.float32)
                nodata = ds.nodata
                transform = ds.transform
                crs = _crs_label(ds.crs)
                band_count = ds.count
                driver = ds.driver
    except rasterio.errors.RasterioIOError as e:
        raise StructuralError(f"Could not open raster: {e}") from e

    pixel_x = abs(transform.a) or 1.0
    pixel_y = abs(transform.e) or 1.0

    logger.info(f"Decoded {driver} raster: {data.shape[1]}x{data.shape[0]}, {band_count} band(s)")
    logger.info(f"  Transform: {transform}")

    return ElevationGrid.from_array(
        data,
        no_data_value=nodata,
        pixel_size=(pixel_x, pixel_y),
        origin=(transform.c, transform.f),
        crs_hint=crs,
        format_label=format_name,
    )
