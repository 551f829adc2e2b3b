"""
Tests for the format registry.
"""

import pytest

from src.terrain_ingest.formats import (
    FORMATS,
    UNKNOWN_FORMAT,
    all_extensions,
    detect_format,
    world_file_candidates,
)


class TestDetectFormat:
    """Tests for detect_format."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("tile.tif", "geotiff"),
            ("TILE.TIFF", "geotiff"),
            ("scene.cog", "cog"),
            ("survey.img", "erdas"),
            ("points.xyz", "xyz"),
            ("quad.dem", "usgsdem"),
            ("n40.dt1", "dted"),
            ("grid.nc", "netcdf"),
            ("scan.PNG", "worldfile"),
            ("cloud.laz", "las"),
        ],
    )
    def test_supported(self, name, expected):
        fmt = detect_format(name)
        assert fmt.id == expected
        assert fmt.supported

    @pytest.mark.parametrize("name", ["ortho.jp2", "data.gpkg", "x.ecw", "y.sid", "z.h5", "swath.he5"])
    def test_recognized_unsupported_has_guidance(self, name):
        fmt = detect_format(name)
        assert not fmt.supported
        assert "GeoTIFF" in fmt.guidance_text
        assert "GDAL" in fmt.guidance_text

    def test_unknown(self):
        fmt = detect_format("notes.txt")
        assert fmt is UNKNOWN_FORMAT
        assert fmt.id == "unknown"
        assert not fmt.supported
        assert fmt.guidance_text

    def test_total_over_odd_strings(self):
        assert detect_format("").id == "unknown"
        assert detect_format(".").id == "unknown"
        assert detect_format("archive.tif.gz").id == "unknown"

    def test_longest_suffix_wins(self):
        # ".hdf5" must not be shadowed by any shorter match
        assert detect_format("a.hdf5").id == "hdf"


class TestRegistryTable:
    def test_ids_unique(self):
        ids = [fmt.id for fmt in FORMATS]
        assert len(ids) == len(set(ids))

    def test_all_extensions_lowercase_dotted(self):
        exts = all_extensions()
        assert ".dt2" in exts and ".jpx" in exts
        assert all(ext.startswith(".") and ext == ext.lower() for ext in exts)


class TestWorldFileCandidates:
    def test_png(self):
        assert world_file_candidates("scan.png") == ["scan.pgw", "scan.pngw", "scan.wld"]

    def test_jpg_in_directory(self):
        candidates = world_file_candidates("maps/photo.jpg")
        assert candidates[0].endswith("photo.jgw")
        assert candidates[-1].endswith("photo.wld")

    def test_non_image_only_wld(self):
        assert world_file_candidates("data.tif") == ["data.wld"]
