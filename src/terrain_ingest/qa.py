"""
Quality checks over a decoded elevation grid, and the JSON report built
from them.
"""

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np

from src.terrain_ingest.grid import ElevationGrid

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"

MAX_PIXEL_SIZE = 10000.0
MAX_NODATA_FRACTION = 0.5


@dataclass
class QaResult:
    """Outcome of one check."""

    check_id: str
    severity: str
    passed: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def check_pixel_size(grid: ElevationGrid) -> QaResult:
    x, y = grid.pixel_size
    details = {"pixel_size_x": x, "pixel_size_y": y}
    if abs(x) <= 0 or abs(y) <= 0:
        return QaResult("pixel_size", ERROR, False, "Pixel size must be positive and non-zero", details)
    if abs(x) > MAX_PIXEL_SIZE or abs(y) > MAX_PIXEL_SIZE:
        details["max"] = MAX_PIXEL_SIZE
        return QaResult(
            "pixel_size", WARNING, False, f"Pixel size exceeds expected range (>{MAX_PIXEL_SIZE:g})", details
        )
    return QaResult("pixel_size", INFO, True, f"Pixel size OK: {abs(x):g} x {abs(y):g}", details)


def check_extent(grid: ElevationGrid) -> QaResult:
    min_x, min_y, max_x, max_y = grid.bounds
    details = {"min_x": min_x, "min_y": min_y, "max_x": max_x, "max_y": max_y}
    if min_x >= max_x or min_y >= max_y:
        return QaResult("extent", ERROR, False, "Extent coordinates are not properly ordered (min >= max)", details)
    width, height = max_x - min_x, max_y - min_y
    details.update(width=width, height=height)
    return QaResult("extent", INFO, True, f"Extent OK: {width:.2f} x {height:.2f}", details)


def check_nodata(grid: ElevationGrid) -> QaResult:
    if grid.no_data_value is None:
        return QaResult(
            "nodata", WARNING, False, "No nodata value defined; may cause rendering artifacts", {"no_data_value": None}
        )
    return QaResult(
        "nodata", INFO, True, f"NoData value: {grid.no_data_value:g}", {"no_data_value": grid.no_data_value}
    )


def check_crs(grid: ElevationGrid) -> QaResult:
    if not grid.crs_hint:
        return QaResult("crs", WARNING, False, "No CRS information found in file", {"crs": None})
    return QaResult("crs", INFO, True, f"CRS: {grid.crs_hint}", {"crs": grid.crs_hint})


def check_nodata_coverage(grid: ElevationGrid) -> QaResult:
    total = grid.width * grid.height
    missing = int(total - np.count_nonzero(grid.valid_mask()))
    fraction = missing / total
    details = {"nodata_cells": missing, "total_cells": total, "fraction": fraction}
    if fraction > MAX_NODATA_FRACTION:
        return QaResult(
            "nodata_coverage", WARNING, False, f"{fraction:.0%} of cells hold no data", details
        )
    return QaResult("nodata_coverage", INFO, True, f"NoData coverage: {fraction:.1%}", details)


def check_pseudo_elevation(grid: ElevationGrid) -> QaResult:
    details = {"pseudo_elevation": grid.pseudo_elevation}
    if grid.pseudo_elevation:
        return QaResult(
            "pseudo_elevation", WARNING, False,
            "Values are image luminance, not measured elevation", details,
        )
    return QaResult("pseudo_elevation", INFO, True, "Values are measured elevations", details)


def run_all_checks(grid: ElevationGrid) -> List[QaResult]:
    """Run every check in a fixed order."""
    results = [
        check_pixel_size(grid),
        check_extent(grid),
        check_nodata(grid),
        check_crs(grid),
        check_nodata_coverage(grid),
        check_pseudo_elevation(grid),
    ]
    failed = [r.check_id for r in results if not r.passed]
    if failed:
        logger.info(f"QA: {len(failed)} check(s) flagged: {', '.join(failed)}")
    return results


def build_report(
    file_name: str,
    grid: ElevationGrid,
    results: List[QaResult],
    start_time: Optional[float] = None,
) -> dict:
    """
    Assemble a JSON-serializable QA report.

    Args:
        file_name: Name shown in the report
        grid: Decoded grid (its ``describe()`` becomes the metadata)
        results: Output of ``run_all_checks``
        start_time: ``time.perf_counter()`` at decode start, for the duration

    Returns:
        Dict with file_id, file_name, metadata, results, timestamp, duration_ms
    """
    duration_ms = None
    if start_time is not None:
        duration_ms = round((time.perf_counter() - start_time) * 1000.0, 3)
    return {
        "file_id": str(uuid.uuid4()),
        "file_name": file_name,
        "metadata": grid.describe(),
        "results": [r.to_dict() for r in results],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "duration_ms": duration_ms,
    }
