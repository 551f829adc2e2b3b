"""
Tests for decode dispatch and file loading.
"""

import warnings

import numpy as np
import pytest

from conftest import build_usgs_dem
from src.terrain_ingest.errors import (
    DecodeError,
    DegradedRecoveryWarning,
    StructuralError,
    UnsupportedFormatError,
)
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.loader import decode, decode_file, decode_files, find_world_file

WORLD_FILE = "0.5\n0\n0\n-0.5\n100.0\n200.0\n"


class TestDecode:
    """Tests for decode dispatch by file name."""

    def test_dispatch_by_extension(self, dted_buffer, usgs_dem_buffer, las_buffer, geotiff_bytes):
        assert decode("n40.dt1", dted_buffer).format_label == "DTED Level 1"
        assert decode("QUAD.DEM", usgs_dem_buffer).format_label.startswith("USGS DEM")
        assert decode("cloud.las", las_buffer).format_label.startswith("LAS 1.2")
        assert decode("dem.tif", geotiff_bytes).format_label == "GeoTIFF"
        assert decode("dem.img", geotiff_bytes).format_label == "ERDAS Imagine"
        assert decode("dem.cog", geotiff_bytes).format_label == "Cloud Optimized GeoTIFF"

    def test_xyz_and_image(self, png_bytes):
        assert decode("pts.xyz", b"0 0 1\n1 0 2\n0 1 3\n1 1 4\n").width == 2
        grid = decode("scan.png", png_bytes, WORLD_FILE)
        assert grid.pseudo_elevation
        assert grid.origin == (100.0, 200.0)

    def test_unsupported_format_carries_guidance(self):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            decode("ortho.jp2", b"\x00" * 16)
        assert exc_info.value.descriptor.id == "jp2"
        assert "GDAL" in exc_info.value.guidance
        assert "GDAL" in str(exc_info.value)

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            decode("readme.md", b"hello")
        assert exc_info.value.descriptor.id == "unknown"

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            decode("bad.dt1", b"nope")
        with pytest.raises(DecodeError):
            decode("bad.las", b"LASX" + bytes(300))

    def test_structural_error_propagates_unchanged(self):
        with pytest.raises(StructuralError):
            decode("bad.dem", b" " * 2000)

    def test_degraded_logged(self, caplog):
        buffer = build_usgs_dem([1, 2, 3, 4])
        with pytest.warns(DegradedRecoveryWarning):
            grid = decode("old.dem", buffer)
        assert grid.degraded
        assert "degraded" in caplog.text

    def test_oversized_image_is_decode_error(self, png_bytes, monkeypatch):
        from PIL import Image

        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1)
        with pytest.raises(StructuralError):
            decode("huge.png", png_bytes)


class TestDecodeFile:
    """Tests for decode_file."""

    def test_reads_from_disk(self, tmp_path, dted_buffer):
        path = tmp_path / "tile.dt0"
        path.write_bytes(dted_buffer)
        grid = decode_file(path)
        assert grid.format_label == "DTED Level 0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            decode_file(tmp_path / "absent.tif")

    def test_sidecar_discovered(self, tmp_path, png_bytes):
        image = tmp_path / "scan.png"
        image.write_bytes(png_bytes)
        (tmp_path / "scan.pgw").write_text(WORLD_FILE)

        assert find_world_file(image) == tmp_path / "scan.pgw"
        grid = decode_file(image)
        assert grid.format_label == "Image + World File (luminance approximation)"
        assert grid.pixel_size == (0.5, 0.5)

    def test_wld_fallback_and_explicit_companion(self, tmp_path, png_bytes):
        image = tmp_path / "scan.png"
        image.write_bytes(png_bytes)
        (tmp_path / "scan.wld").write_text(WORLD_FILE)
        other = tmp_path / "custom.txt"
        other.write_text("3\n0\n0\n-3\n1\n2\n")

        assert decode_file(image).origin == (100.0, 200.0)
        assert decode_file(image, companion_path=other).pixel_size == (3.0, 3.0)

    def test_image_without_sidecar(self, tmp_path, png_bytes):
        image = tmp_path / "plain.png"
        image.write_bytes(png_bytes)
        assert find_world_file(image) is None
        assert decode_file(image).format_label == "Image (luminance approximation)"


class TestDecodeFiles:
    """Tests for concurrent decode_files."""

    def test_results_and_errors(self, tmp_path, dted_buffer, usgs_dem_buffer):
        good_a = tmp_path / "a.dt1"
        good_a.write_bytes(dted_buffer)
        good_b = tmp_path / "b.dem"
        good_b.write_bytes(usgs_dem_buffer)
        bad = tmp_path / "c.dt1"
        bad.write_bytes(b"junk")
        unsupported = tmp_path / "d.ecw"
        unsupported.write_bytes(b"junk")

        results = dict(decode_files([good_a, good_b, bad, unsupported], max_workers=2))

        assert set(results) == {good_a, good_b, bad, unsupported}
        assert isinstance(results[good_a], ElevationGrid)
        assert isinstance(results[good_b], ElevationGrid)
        assert isinstance(results[bad], StructuralError)
        assert isinstance(results[unsupported], UnsupportedFormatError)

    def test_oversized_image_does_not_abort_batch(self, tmp_path, dted_buffer, png_bytes, monkeypatch):
        from PIL import Image

        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1)
        good = tmp_path / "a.dt1"
        good.write_bytes(dted_buffer)
        huge = tmp_path / "huge.png"
        huge.write_bytes(png_bytes)

        results = dict(decode_files([good, huge], max_workers=2))

        assert isinstance(results[good], ElevationGrid)
        assert isinstance(results[huge], StructuralError)

    def test_empty(self):
        assert list(decode_files([])) == []
