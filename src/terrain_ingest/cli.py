"""
Command-line interface for terrain-ingest.

Examples:
  # QA-scan every supported file in a directory, writing JSON reports
  terrain-ingest scan data/ --output reports/

  # Render a slope texture
  terrain-ingest render data/tile.dt1 --mode slope --output tile_slope.png

  # Render the built-in sample terrain with the arctic ramp
  terrain-ingest render --sample --mode elevation --ramp arctic --output sample.png

  # Elevation profile across the grid diagonal
  terrain-ingest profile data/tile.dem --start 0 0 --end 1 1
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from PIL import Image
from tqdm import tqdm

from src.config import DEFAULT_COLOR_RAMP, DEFAULT_LOG_LEVEL, MAX_POINTS, MAX_TEXTURE_SIZE
from src.terrain_ingest.color_mapping import COLOR_RAMPS
from src.terrain_ingest.errors import DecodeError, UnsupportedFormatError
from src.terrain_ingest.formats import FORMATS, detect_format
from src.terrain_ingest.loader import decode_file
from src.terrain_ingest.options import DecodeOptions
from src.terrain_ingest.profile import sample_profile
from src.terrain_ingest.qa import build_report, run_all_checks
from src.terrain_ingest.sample_terrain import generate_sample_terrain
from src.terrain_ingest.surface import MODES, derive_surface

logger = logging.getLogger(__name__)


def _collect_inputs(inputs):
    """Expand directories into the supported files they contain."""
    files = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            found = sorted(p for p in path.iterdir() if p.is_file() and detect_format(p.name).supported)
            logger.info(f"Found {len(found)} supported file(s) in {path}")
            files.extend(found)
        else:
            files.append(path)
    return files


def _options(args) -> DecodeOptions:
    return DecodeOptions(max_points=args.max_points, show_progress=args.verbose)


def cmd_scan(args) -> int:
    files = _collect_inputs(args.inputs)
    if not files:
        logger.warning("No supported files found")
        return 0

    args.output.mkdir(parents=True, exist_ok=True)
    options = _options(args)
    reports = []
    failures = 0

    for path in tqdm(files, desc="Scanning", disable=len(files) < 2):
        start_time = time.perf_counter()
        try:
            grid = decode_file(path, options=options)
        except UnsupportedFormatError as e:
            logger.error(f"Skipping {path.name}: {e.guidance or e}")
            failures += 1
            continue
        except (DecodeError, OSError) as e:
            logger.error(f"Failed to process {path.name}: {e}")
            failures += 1
            continue

        results = run_all_checks(grid)
        report = build_report(path.name, grid, results, start_time)
        reports.append(report)

        report_path = args.output / f"{path.name}.qa.json"
        report_path.write_text(json.dumps(report, indent=2))
        passed = sum(r.passed for r in results)
        logger.info(f"{path.name}: {passed}/{len(results)} checks passed -> {report_path}")

    if reports:
        summary_path = args.output / "summary.json"
        summary_path.write_text(json.dumps(reports, indent=2))
        logger.info(f"Summary report written: {summary_path}")

    total = sum(len(r["results"]) for r in reports)
    passed = sum(res["passed"] for r in reports for res in r["results"])
    logger.info(f"Scan complete: {len(reports)} file(s), {passed}/{total} checks passed, {failures} failure(s)")
    return 1 if failures else 0


def cmd_render(args) -> int:
    if args.sample:
        grid = generate_sample_terrain()
        default_name = "sample"
    elif args.input is not None:
        grid = decode_file(args.input, args.world_file, options=_options(args))
        default_name = args.input.stem
    else:
        logger.error("Provide an input file or --sample")
        return 2

    rgba = derive_surface(grid, args.resolution, args.mode, args.ramp)
    output = args.output or Path(f"{default_name}_{args.mode}.png")
    output.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(rgba).save(output)
    logger.info(f"Saved {rgba.shape[1]}x{rgba.shape[0]} {args.mode} texture to {output}")
    return 0


def cmd_profile(args) -> int:
    grid = generate_sample_terrain() if args.sample else decode_file(args.input, options=_options(args))
    profile = sample_profile(grid, tuple(args.start), tuple(args.end), args.samples)
    stats = profile.stats
    print(
        json.dumps(
            {
                "start_elevation": stats.start_elevation,
                "end_elevation": stats.end_elevation,
                "min_elevation": stats.min_elevation,
                "max_elevation": stats.max_elevation,
                "total_ascent": stats.total_ascent,
                "total_descent": stats.total_descent,
                "distance": stats.distance,
                "samples": len(profile.elevations),
            },
            indent=2,
        )
    )
    return 0


def cmd_formats(args) -> int:
    for fmt in FORMATS:
        status = "yes" if fmt.supported else "no"
        print(f"{fmt.id:10s} {status:4s} {fmt.display_name:26s} {' '.join(fmt.extensions)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terrain-ingest",
        description="Decode elevation files, run QA checks and render surface textures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1],
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and progress bars")
    parser.add_argument(
        "--max-points",
        type=int,
        default=MAX_POINTS,
        help=f"Point-cloud cap before stride sampling (default: {MAX_POINTS:,})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Decode files and write QA reports")
    scan.add_argument("inputs", nargs="+", help="Files or directories")
    scan.add_argument("-o", "--output", type=Path, default=Path("output"), help="Report directory (default: output/)")
    scan.set_defaults(func=cmd_scan)

    render = sub.add_parser("render", help="Render a slope, aspect or elevation texture to PNG")
    render.add_argument("input", nargs="?", type=Path, help="Elevation file")
    render.add_argument("--sample", action="store_true", help="Use the built-in synthetic terrain")
    render.add_argument("--world-file", type=Path, default=None, help="World file for image inputs")
    render.add_argument("--mode", choices=MODES, default="slope")
    render.add_argument("--ramp", choices=sorted(COLOR_RAMPS), default=DEFAULT_COLOR_RAMP)
    render.add_argument(
        "--resolution", type=int, default=MAX_TEXTURE_SIZE, help=f"Max texture size (default: {MAX_TEXTURE_SIZE})"
    )
    render.add_argument("-o", "--output", type=Path, default=None, help="PNG path (default: <name>_<mode>.png)")
    render.set_defaults(func=cmd_render)

    profile = sub.add_parser("profile", help="Print elevation profile statistics as JSON")
    profile.add_argument("input", nargs="?", type=Path, help="Elevation file")
    profile.add_argument("--sample", action="store_true", help="Use the built-in synthetic terrain")
    profile.add_argument("--start", type=float, nargs=2, default=[0.0, 0.5], metavar=("U", "V"))
    profile.add_argument("--end", type=float, nargs=2, default=[1.0, 0.5], metavar=("U", "V"))
    profile.add_argument("--samples", type=int, default=200)
    profile.set_defaults(func=cmd_profile)

    formats = sub.add_parser("formats", help="List known formats")
    formats.set_defaults(func=cmd_formats)

    return parser


def main(argv=None) -> int:
    """Entry point for the ``terrain-ingest`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, DEFAULT_LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s: %(message)s",
    )

    if args.command == "profile" and not args.sample and args.input is None:
        parser.error("profile needs an input file or --sample")

    try:
        return args.func(args)
    except UnsupportedFormatError as e:
        logger.error(f"{e}")
        return 1
    except (ValueError, OSError) as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
