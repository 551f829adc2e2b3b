"""Pytest configuration and fixtures for terrain-ingest tests."""
import struct
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import numpy as np


# =============================================================================
# Synthetic file builders (plain functions so tests can vary the inputs)
# =============================================================================


def _pad(text, length):
    data = text.encode("latin-1") if isinstance(text, str) else bytes(text)
    return data[:length].ljust(length, b" ")


def _sign_magnitude(value):
    return (0x8000 | (-value & 0x7FFF)) if value < 0 else value


def build_dted(columns, origin_lon="0750000W", origin_lat="0400000N", interval="0300", sentinels=True):
    """
    DTED buffer from a list of columns, each listed south to north.

    Args:
        columns: Sequence of equal-length integer sequences
        origin_lon, origin_lat: Packed DMS origin fields
        interval: 4-char tenths-of-arc-second spacing for both axes
        sentinels: Write the DSI/ACC block sentinels
    """
    width = len(columns)
    height = len(columns[0])

    uhl = bytearray(_pad("", 80))
    uhl[0:4] = b"UHL1"
    uhl[4:12] = _pad(origin_lon, 8)
    uhl[12:20] = _pad(origin_lat, 8)
    uhl[20:24] = _pad(interval, 4)
    uhl[24:28] = _pad(interval, 4)
    uhl[47:51] = f"{width:04d}".encode()
    uhl[51:55] = f"{height:04d}".encode()

    dsi = _pad("DSI" if sentinels else "XXX", 648)
    acc = _pad("ACC" if sentinels else "XXX", 2700)

    records = bytearray()
    for col, values in enumerate(columns):
        records += b"\xaa" + struct.pack(">BHHH", 0, col, col, 0)[:7]
        records += b"".join(struct.pack(">H", _sign_magnitude(v)) for v in values)
        records += b"\x00\x00\x00\x00"

    return bytes(uhl) + dsi + acc + bytes(records)


def build_usgs_dem(
    values,
    rows=None,
    cols=None,
    name="TEST QUADRANGLE",
    level=1,
    planimetric=0,
    corners=((-84.0, 37.0), (-84.0, 38.0), (-83.0, 38.0), (-83.0, 37.0)),
    resolution=(30.0, 30.0, 1.0),
):
    """USGS DEM buffer: 1024-byte type A header followed by the values."""
    header = bytearray(_pad("", 1024))
    header[0:40] = _pad(name, 40)
    header[144:150] = f"{level:6d}".encode()
    header[150:156] = f"{1:6d}".encode()
    header[156:162] = f"{planimetric:6d}".encode()
    corner_text = "".join(f"{v:24.15E}".replace("E", "D") for pair in corners for v in pair)
    header[546:738] = _pad(corner_text, 192)
    header[816:828] = _pad(f"{resolution[0]:12.6E}", 12)
    header[828:840] = _pad(f"{resolution[1]:12.6E}", 12)
    header[840:852] = _pad(f"{resolution[2]:12.6E}", 12)
    if rows is not None and cols is not None:
        header[852:864] = f"{rows:6d}{cols:6d}".encode()
    body = " ".join(f"{v:6d}" for v in values)
    return bytes(header) + body.encode("ascii")


def build_las(points, scale=(0.01, 0.01, 0.01), offset=(0.0, 0.0, 0.0), minor=2, record_length=20):
    """Uncompressed LAS 1.x buffer with point format 0 records."""
    points = np.asarray(points, dtype=np.float64)
    header_size = 227 if minor < 3 else (235 if minor == 3 else 375)
    header = bytearray(header_size)
    header[0:4] = b"LASF"
    header[24] = 1
    header[25] = minor
    struct.pack_into("<H", header, 94, header_size)
    struct.pack_into("<I", header, 96, header_size)
    struct.pack_into("<I", header, 100, 0)
    header[104] = 0
    struct.pack_into("<H", header, 105, record_length)
    struct.pack_into("<I", header, 107, len(points))
    struct.pack_into("<3d", header, 131, *scale)
    struct.pack_into("<3d", header, 155, *offset)
    mins, maxs = points.min(axis=0), points.max(axis=0)
    struct.pack_into("<6d", header, 179, maxs[0], mins[0], maxs[1], mins[1], maxs[2], mins[2])
    if minor >= 4:
        struct.pack_into("<Q", header, 247, len(points))

    raw = np.round((points - np.asarray(offset)) / np.asarray(scale)).astype("<i4")
    body = bytearray()
    for x, y, z in raw:
        body += struct.pack("<3i", x, y, z) + bytes(record_length - 12)
    return bytes(header) + bytes(body)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sample_dem():
    """Create a small synthetic DEM for testing."""
    x = np.linspace(-10, 10, 50)
    y = np.linspace(-10, 10, 40)
    X, Y = np.meshgrid(x, y)
    # Simple terrain with a peak in the center
    Z = 1000 + 100 * np.exp(-(X**2 + Y**2) / 50)
    return Z.astype(np.float32)


@pytest.fixture
def sample_grid(sample_dem):
    """ElevationGrid wrapping sample_dem in geographic coordinates."""
    from src.terrain_ingest.grid import ElevationGrid

    return ElevationGrid.from_array(
        sample_dem,
        no_data_value=-9999.0,
        pixel_size=(0.001, 0.001),
        origin=(-83.5, 37.54),
        crs_hint="EPSG:4326",
        format_label="Test",
    )


@pytest.fixture
def dted_buffer():
    """3 columns x 4 rows; column c holds 10*c + (1..4) south to north."""
    return build_dted([[10 * c + i for i in range(1, 5)] for c in range(3)])


@pytest.fixture
def usgs_dem_buffer():
    """2 rows x 3 columns holding 1..6."""
    return build_usgs_dem([1, 2, 3, 4, 5, 6], rows=2, cols=3)


@pytest.fixture
def las_points():
    """Regular 20x10 lattice with z = x + y."""
    xs, ys = np.meshgrid(np.arange(20, dtype=np.float64), np.arange(10, dtype=np.float64))
    xs, ys = xs.ravel() + 500000.0, ys.ravel() + 4000000.0
    return np.column_stack([xs, ys, (xs - 500000.0) + (ys - 4000000.0)])


@pytest.fixture
def las_buffer(las_points):
    return build_las(las_points, offset=(500000.0, 4000000.0, 0.0))


@pytest.fixture
def png_bytes():
    """2x2 RGB PNG: black, white / red, green."""
    import io

    from PIL import Image

    pixels = np.array([[[0, 0, 0], [255, 255, 255]], [[255, 0, 0], [0, 255, 0]]], dtype=np.uint8)
    out = io.BytesIO()
    Image.fromarray(pixels).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def geotiff_bytes(tmp_path):
    """3x4 float32 GeoTIFF in EPSG:4326 with nodata -9999."""
    import rasterio
    from rasterio.transform import from_origin

    data = np.arange(12, dtype=np.float32).reshape(3, 4)
    data[0, 0] = -9999.0
    path = tmp_path / "dem.tif"
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=3,
        width=4,
        count=1,
        dtype="float32",
        crs="EPSG:4326",
        transform=from_origin(-105.0, 40.0, 0.5, 0.25),
        nodata=-9999.0,
    ) as dst:
        dst.write(data, 1)
    return path.read_bytes()


@pytest.fixture
def project_root():
    """Get the project root directory."""
    return Path(__file__).parent.parent
