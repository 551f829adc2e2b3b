"""
LAS/LAZ point-cloud decoder.

Reads the LAS public header block directly, scans the variable length
records for a LASzip marker, and then either reads raw point records in
place (LAS) or streams them through laspy's LASzip backend (LAZ). Both paths
apply the header scale/offset to the raw integer coordinates and keep a
stride-sampled subset when the cloud exceeds the point cap. The points are
then binned into a regular elevation grid.

Example:
    >>> cloud = read_las_points(buffer, max_points=1_000_000)
    >>> print(f"Kept {cloud.count} of {cloud.header.point_count} points (stride {cloud.stride})")
"""

import io
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import laspy
import numpy as np
from laspy.errors import LaspyException
from tqdm import tqdm

from src.terrain_ingest.byteview import BufferLike, ByteView
from src.terrain_ingest.coords import is_geographic_extent
from src.terrain_ingest.errors import EmptyDatasetError, StructuralError
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.options import DEFAULT_OPTIONS, DecodeOptions
from src.terrain_ingest.resample import points_to_grid, sampling_stride, target_grid_size

logger = logging.getLogger(__name__)

SIGNATURE = b"LASF"
MIN_HEADER_LENGTH = 227
VLR_HEADER_LENGTH = 54
LASZIP_USER_ID = "laszip encoded"
LASZIP_RECORD_ID = 22204
# Bits 6/7 of the point format byte flag compressed data in LAZ files
COMPRESSION_BITS = 0xC0

# First VLR offset by minor version (fixed public header sizes)
_VLR_START = {0: 227, 1: 227, 2: 227, 3: 235, 4: 375}

# Public header block offsets
_VERSION_MAJOR = 24
_VERSION_MINOR = 25
_OFFSET_TO_POINTS = 96
_NUM_VLRS = 100
_POINT_FORMAT = 104
_RECORD_LENGTH = 105
_LEGACY_POINT_COUNT = 107
_SCALE = 131
_OFFSET = 155
_BOUNDS = 179
_POINT_COUNT_64 = 247

_XYZ_LENGTH = 12


@dataclass(frozen=True)
class LasHeader:
    """Fields of the LAS public header block needed for gridding."""

    version_minor: int
    point_format: int
    point_record_length: int
    point_count: int
    offset_to_point_data: int
    vlr_count: int
    scale: Tuple[float, float, float]
    offset: Tuple[float, float, float]
    bounds: Tuple[float, float, float, float, float, float]
    """(min_x, max_x, min_y, max_y, min_z, max_z) as stored in the header."""
    compressed: bool = False


@dataclass
class PointCloud:
    """Scaled coordinates retained from a LAS/LAZ file."""

    xs: np.ndarray
    ys: np.ndarray
    zs: np.ndarray
    header: LasHeader
    stride: int

    @property
    def count(self) -> int:
        return int(self.xs.size)


def _scan_vlrs_for_laszip(view: ByteView, version_minor: int, vlr_count: int, offset_to_points: int) -> bool:
    vlr_offset = _VLR_START[version_minor]
    for _ in range(vlr_count):
        if vlr_offset >= offset_to_points or vlr_offset + VLR_HEADER_LENGTH > len(view):
            break
        user_id = view.ascii(vlr_offset + 2, 16).replace("\x00", "")
        record_id = view.u16le(vlr_offset + 18)
        payload_length = view.u16le(vlr_offset + 20)
        if user_id == LASZIP_USER_ID or record_id == LASZIP_RECORD_ID:
            return True
        vlr_offset += VLR_HEADER_LENGTH + payload_length
    return False


def parse_las_header(buffer: BufferLike) -> LasHeader:
    """
    Parse the LAS public header block and detect LASzip compression.

    Raises:
        StructuralError: Bad signature, unsupported version or truncated header
    """
    view = ByteView(buffer)
    if len(view) < 4 or bytes(view.raw[:4]) != SIGNATURE:
        raise StructuralError("Not a valid LAS/LAZ file (missing LASF signature)")
    if len(view) < MIN_HEADER_LENGTH:
        raise StructuralError(f"LAS header truncated ({len(view)} bytes, need {MIN_HEADER_LENGTH})")

    major = view.u8(_VERSION_MAJOR)
    minor = view.u8(_VERSION_MINOR)
    if major != 1 or minor > 4:
        raise StructuralError(f"Unsupported LAS version {major}.{minor}")

    offset_to_points = view.u32le(_OFFSET_TO_POINTS)
    vlr_count = view.u32le(_NUM_VLRS)
    point_format_byte = view.u8(_POINT_FORMAT)
    record_length = view.u16le(_RECORD_LENGTH)

    if minor >= 4:
        try:
            point_count = view.u64le(_POINT_COUNT_64)
        except IndexError as e:
            raise StructuralError("LAS 1.4 header truncated before 64-bit point count") from e
    else:
        point_count = view.u32le(_LEGACY_POINT_COUNT)

    scale = tuple(view.f64le(_SCALE + 8 * i) for i in range(3))
    offset = tuple(view.f64le(_OFFSET + 8 * i) for i in range(3))
    max_x, min_x, max_y, min_y, max_z, min_z = (view.f64le(_BOUNDS + 8 * i) for i in range(6))

    compressed = _scan_vlrs_for_laszip(view, minor, vlr_count, offset_to_points)
    if not compressed and point_format_byte & COMPRESSION_BITS:
        logger.debug("LASzip VLR not found but point format compression bits are set")
        compressed = True

    return LasHeader(
        version_minor=minor,
        point_format=point_format_byte & 0x3F,
        point_record_length=record_length,
        point_count=int(point_count),
        offset_to_point_data=offset_to_points,
        vlr_count=vlr_count,
        scale=scale,
        offset=offset,
        bounds=(min_x, max_x, min_y, max_y, min_z, max_z),
        compressed=compressed,
    )


def _apply_scale(raw_x, raw_y, raw_z, header: LasHeader):
    (sx, sy, sz), (ox, oy, oz) = header.scale, header.offset
    return (
        np.asarray(raw_x, dtype=np.float64) * sx + ox,
        np.asarray(raw_y, dtype=np.float64) * sy + oy,
        np.asarray(raw_z, dtype=np.float64) * sz + oz,
    )


def _read_uncompressed(buffer: BufferLike, header: LasHeader, stride: int):
    view = ByteView(buffer)
    record_length = header.point_record_length
    start = header.offset_to_point_data
    if record_length < _XYZ_LENGTH:
        raise StructuralError(f"Point record length {record_length} is too short for X/Y/Z")

    available_bytes = max(0, len(view) - start)
    full_records = min(header.point_count, available_bytes // record_length)

    record_dtype = np.dtype(
        {"names": ["x", "y", "z"], "formats": ["<i4"] * 3, "offsets": [0, 4, 8], "itemsize": record_length}
    )
    if full_records > 0:
        records = np.ndarray(shape=(full_records,), dtype=record_dtype, buffer=view.raw, offset=start)
        sampled = records[::stride]
        raw_x, raw_y, raw_z = sampled["x"], sampled["y"], sampled["z"]
    else:
        raw_x = raw_y = raw_z = np.empty(0, dtype=np.int32)

    # A final partial record still counts if its coordinates are present
    tail_index = full_records
    tail_offset = start + tail_index * record_length
    if (
        tail_index < header.point_count
        and tail_index % stride == 0
        and tail_offset + _XYZ_LENGTH <= len(view)
    ):
        raw_x = np.append(raw_x, view.i32le(tail_offset))
        raw_y = np.append(raw_y, view.i32le(tail_offset + 4))
        raw_z = np.append(raw_z, view.i32le(tail_offset + 8))

    if full_records < header.point_count:
        logger.warning(
            f"LAS header claims {header.point_count} points but buffer holds about {full_records}"
        )

    return _apply_scale(raw_x, raw_y, raw_z, header)


def _read_compressed(buffer: BufferLike, header: LasHeader, stride: int, options: DecodeOptions):
    source = buffer if isinstance(buffer, bytes) else bytes(buffer)
    xs_parts, ys_parts, zs_parts = [], [], []

    try:
        with laspy.open(io.BytesIO(source)) as reader:
            total = reader.header.point_count
            chunks = reader.chunk_iterator(options.chunk_size)
            if options.show_progress:
                chunks = tqdm(
                    chunks, total=math.ceil(total / options.chunk_size), desc="Decompressing LAZ points"
                )

            seen = 0
            for points in chunks:
                n = len(points)
                # First local index whose global index is a multiple of stride
                first = (-seen) % stride
                selection = slice(first, n, stride)
                raw_x = np.asarray(points.X)[selection]
                raw_y = np.asarray(points.Y)[selection]
                raw_z = np.asarray(points.Z)[selection]
                xs, ys, zs = _apply_scale(raw_x, raw_y, raw_z, header)
                xs_parts.append(xs)
                ys_parts.append(ys)
                zs_parts.append(zs)
                seen += n
    except LaspyException as e:
        raise StructuralError(f"Could not decompress LAZ data: {e}") from e

    if not xs_parts:
        empty = np.empty(0, dtype=np.float64)
        return empty, empty, empty
    return np.concatenate(xs_parts), np.concatenate(ys_parts), np.concatenate(zs_parts)


def read_las_points(
    buffer: BufferLike,
    max_points: Optional[int] = None,
    options: Optional[DecodeOptions] = None,
) -> PointCloud:
    """
    Read scaled point coordinates from a LAS or LAZ buffer.

    Args:
        buffer: Complete file contents
        max_points: Point cap; overrides ``options.max_points`` when given
        options: DecodeOptions for chunking and progress display

    Returns:
        PointCloud with at most max_points points, sampled with a uniform
        stride so that the subset spans the whole file

    Raises:
        StructuralError: Invalid header or undecodable LAZ payload
        EmptyDatasetError: The header declares zero points
    """
    options = options or DEFAULT_OPTIONS
    cap = max_points if max_points is not None else options.max_points
    if cap < 1:
        raise ValueError(f"max_points must be >= 1, got {cap}")

    header = parse_las_header(buffer)
    if header.point_count == 0:
        raise EmptyDatasetError("LAS/LAZ file contains no points")

    stride = sampling_stride(header.point_count, cap)
    if stride > 1:
        logger.info(f"Sampling every {stride}th point of {header.point_count:,} (cap {cap:,})")

    if header.compressed:
        xs, ys, zs = _read_compressed(buffer, header, stride, options)
    else:
        xs, ys, zs = _read_uncompressed(buffer, header, stride)

    return PointCloud(xs=xs, ys=ys, zs=zs, header=header, stride=stride)


def decode_las(buffer: BufferLike, options: Optional[DecodeOptions] = None) -> ElevationGrid:
    """
    Decode a LAS/LAZ point cloud into a gap-free elevation grid.

    Args:
        buffer: Complete file contents
        options: DecodeOptions (point cap, grid resolution bounds, gap fill)

    Returns:
        ElevationGrid without NaN cells; CRS hint EPSG:4326 when the extent
        fits geographic degree ranges

    Raises:
        StructuralError: Invalid header or undecodable LAZ payload
        EmptyDatasetError: No points could be read
    """
    options = options or DEFAULT_OPTIONS
    cloud = read_las_points(buffer, options=options)
    if cloud.count == 0:
        raise EmptyDatasetError("LAS/LAZ file contains no readable points")

    grid_size = target_grid_size(cloud.count, options.min_grid_resolution, options.max_grid_resolution)
    resampled = points_to_grid(cloud.xs, cloud.ys, cloud.zs, grid_size, passes=options.gap_fill_passes)

    geographic = is_geographic_extent(resampled.min_x, resampled.min_y, resampled.max_x, resampled.max_y)
    header = cloud.header
    label = (
        f"{'LAZ' if header.compressed else 'LAS'} 1.{header.version_minor} "
        f"({header.point_count:,} pts, PDRF {header.point_format} -> "
        f"{resampled.width}x{resampled.height} grid)"
    )

    logger.info(f"Decoded {label}")
    logger.info(f"  Z range: {resampled.elevations.min():.2f} to {resampled.elevations.max():.2f}")

    return ElevationGrid.from_array(
        resampled.elevations,
        no_data_value=None,
        pixel_size=resampled.pixel_size,
        origin=(resampled.min_x, resampled.max_y),
        crs_hint="EPSG:4326" if geographic else None,
        format_label=label,
    )
