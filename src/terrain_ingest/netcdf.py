"""
NetCDF (classic format) elevation decoder.

Finds the elevation variable by conventional name, falling back to the
first two-dimensional variable, and derives georeferencing from 1D
longitude/latitude coordinate variables when present.
"""

import io
import logging
import warnings
from typing import Optional

import numpy as np
from scipy.io import netcdf_file

from src.terrain_ingest.byteview import BufferLike
from src.terrain_ingest.errors import (
    DecodeError,
    DegradedRecoveryWarning,
    EmptyDatasetError,
    StructuralError,
)
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.resample import near_square_shape

logger = logging.getLogger(__name__)

ELEVATION_NAMES = ("elevation", "dem", "z", "Band1", "height", "alt", "topo", "data")
LONGITUDE_NAMES = ("lon", "longitude", "x", "X")
LATITUDE_NAMES = ("lat", "latitude", "y", "Y")


def _find_variable(variables, names) -> Optional[str]:
    for name in names:
        if name in variables:
            return name
    return None


def _coordinate_axis(variables, names):
    name = _find_variable(variables, names)
    if name is None:
        return None
    values = np.asarray(variables[name].data, dtype=np.float64).reshape(-1)
    return values if values.size >= 2 else None


def decode_netcdf(buffer: BufferLike) -> ElevationGrid:
    """
    Decode an elevation variable from a NetCDF classic file.

    Args:
        buffer: Complete file contents (CDF-1/CDF-2)

    Returns:
        ElevationGrid with north row first

    Raises:
        StructuralError: The buffer is not a NetCDF classic file
        EmptyDatasetError: No elevation variable, or the variable is empty
    """
    source = buffer if isinstance(buffer, bytes) else bytes(buffer)

    try:
        with netcdf_file(io.BytesIO(source), "r", mmap=False) as nc:
            variables = nc.variables
            var_name = _find_variable(variables, ELEVATION_NAMES)
            if var_name is None:
                var_name = next((name for name, var in variables.items() if len(var.dimensions) == 2), None)
            if var_name is None:
                raise EmptyDatasetError(
                    f"No elevation variable found. Available: {', '.join(variables)}"
                )

            var = variables[var_name]
            raw = np.array(var.data, dtype=np.float64, copy=True)
            fill_value = getattr(var, "_FillValue", None)
            if fill_value is None:
                fill_value = getattr(var, "missing_value", None)
            scale_factor = getattr(var, "scale_factor", None)
            add_offset = getattr(var, "add_offset", None)

            lons = _coordinate_axis(variables, LONGITUDE_NAMES)
            lats = _coordinate_axis(variables, LATITUDE_NAMES)
    except DecodeError:
        raise
    except (TypeError, ValueError, OSError) as e:
        raise StructuralError(f"Could not read NetCDF file: {e}") from e

    if raw.size == 0:
        raise EmptyDatasetError(f"Variable '{var_name}' contains no data")

    no_data = None
    if fill_value is not None:
        no_data = float(np.asarray(fill_value).reshape(-1)[0])
        missing = raw == no_data
    else:
        missing = np.zeros(raw.shape, dtype=bool)

    if scale_factor is not None:
        raw = raw * float(np.asarray(scale_factor).reshape(-1)[0])
    if add_offset is not None:
        raw = raw + float(np.asarray(add_offset).reshape(-1)[0])
    if no_data is not None:
        raw[missing] = no_data

    degraded = False
    if raw.ndim >= 2:
        # Leading dimensions (time, band) are reduced to their first slice
        data = raw.reshape((-1,) + raw.shape[-2:])[0]
    else:
        width, height = near_square_shape(raw.size)
        data = np.zeros(width * height, dtype=np.float64)
        data[: raw.size] = raw
        data = data.reshape(height, width)
        degraded = True
        message = f"NetCDF variable '{var_name}' is not 2D; reshaped into {width}x{height}"
        warnings.warn(message, DegradedRecoveryWarning, stacklevel=2)
        logger.warning(message)

    origin_x = origin_y = 0.0
    pixel_x = pixel_y = 1.0
    if lons is not None:
        origin_x = lons[0]
        pixel_x = abs(lons[1] - lons[0]) or 1.0
    if lats is not None:
        pixel_y = abs(lats[1] - lats[0]) or 1.0
        origin_y = lats.max()
        if lats[0] < lats[-1]:
            data = data[::-1, :]

    logger.info(f"Decoded NetCDF variable '{var_name}': {data.shape[1]}x{data.shape[0]}")

    return ElevationGrid.from_array(
        data,
        no_data_value=no_data,
        pixel_size=(pixel_x, pixel_y),
        origin=(origin_x, origin_y),
        format_label=f"NetCDF ({var_name})",
        degraded=degraded,
    )
