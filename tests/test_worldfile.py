"""
Tests for the image + world-file decoder.
"""

import numpy as np
import pytest

from src.terrain_ingest.errors import StructuralError
from src.terrain_ingest.worldfile import decode_image_with_world_file, luminance, parse_world_file

WORLD_FILE = "2.0\n0.0\n0.0\n-2.0\n440720.0\n3751320.0\n"


class TestParseWorldFile:
    def test_six_lines(self):
        wf = parse_world_file(WORLD_FILE)
        assert wf.pixel_size_x == 2.0
        assert wf.pixel_size_y == 2.0
        assert (wf.origin_x, wf.origin_y) == (440720.0, 3751320.0)

    def test_bytes_and_blank_lines(self):
        wf = parse_world_file(b"\n1.5\n0\n0\n-1.5\n\n10\n20\n")
        assert wf.pixel_size_x == 1.5
        assert wf.origin_y == 20.0

    def test_too_few_lines(self):
        assert parse_world_file("1\n0\n0\n") is None
        assert parse_world_file(None) is None

    def test_unparseable_scale_defaults_to_one(self):
        wf = parse_world_file("abc\n0\n0\n0\n5\n6\n")
        assert wf.pixel_size_x == 1.0
        assert wf.pixel_size_y == 1.0


class TestLuminance:
    def test_weights(self):
        rgb = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        np.testing.assert_allclose(luminance(rgb)[0], [76.245, 149.685, 29.07])


class TestDecodeImage:
    """Tests for decode_image_with_world_file."""

    def test_luminance_surface(self, png_bytes):
        grid = decode_image_with_world_file(png_bytes)

        assert (grid.width, grid.height) == (2, 2)
        np.testing.assert_allclose(grid.to_array(), [[0.0, 255.0], [76.245, 149.685]], rtol=1e-5)
        assert grid.pseudo_elevation
        assert grid.format_label == "Image (luminance approximation)"
        assert grid.pixel_size == (1.0, 1.0)
        assert grid.origin == (0.0, 0.0)

    def test_world_file_georeference(self, png_bytes):
        grid = decode_image_with_world_file(png_bytes, WORLD_FILE)

        assert grid.format_label == "Image + World File (luminance approximation)"
        assert grid.pixel_size == (2.0, 2.0)
        assert grid.origin == (440720.0, 3751320.0)
        assert grid.crs_hint is None

    def test_not_an_image(self):
        with pytest.raises(StructuralError):
            decode_image_with_world_file(b"definitely not an image")

    def test_pixel_limit_is_structural_error(self, png_bytes, monkeypatch):
        from PIL import Image

        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1)
        with pytest.raises(StructuralError, match="Could not decode image"):
            decode_image_with_world_file(png_bytes)
