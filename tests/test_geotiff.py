"""
Tests for the rasterio-backed GeoTIFF decoder.
"""

import pytest

from src.terrain_ingest.errors import StructuralError
from src.terrain_ingest.geotiff import decode_geotiff


class TestDecodeGeotiff:
    """Round trips through rasterio's GTiff driver."""

    def test_values_and_metadata(self, geotiff_bytes):
        grid = decode_geotiff(geotiff_bytes)

        assert (grid.width, grid.height) == (4, 3)
        assert grid.to_array()[2].tolist() == [8.0, 9.0, 10.0, 11.0]
        assert grid.no_data_value == -9999.0
        assert not grid.valid_mask()[0, 0]
        assert grid.crs_hint == "EPSG:4326"
        assert grid.format_label == "GeoTIFF"

    def test_transform(self, geotiff_bytes):
        grid = decode_geotiff(geotiff_bytes)

        assert grid.pixel_size == (0.5, 0.25)
        assert grid.origin == (-105.0, 40.0)
        assert grid.bounds == pytest.approx((-105.0, 39.25, -103.0, 40.0))

    def test_label_override(self, geotiff_bytes):
        assert decode_geotiff(geotiff_bytes, "ERDAS Imagine").format_label == "ERDAS Imagine"

    def test_accepts_memoryview(self, geotiff_bytes):
        assert decode_geotiff(memoryview(geotiff_bytes)).width == 4

    def test_garbage(self):
        with pytest.raises(StructuralError):
            decode_geotiff(b"plain text, not a raster")
