"""
Decode entry points: pick a decoder by file name and run it.

``decode`` works on in-memory buffers; ``decode_file`` and ``decode_files``
read from disk, locating world-file sidecars for plain images.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from tqdm import tqdm

from src.terrain_ingest.byteview import BufferLike
from src.terrain_ingest.dted import decode_dted
from src.terrain_ingest.errors import UnsupportedFormatError
from src.terrain_ingest.formats import detect_format, world_file_candidates
from src.terrain_ingest.geotiff import decode_geotiff
from src.terrain_ingest.grid import ElevationGrid
from src.terrain_ingest.las import decode_las
from src.terrain_ingest.netcdf import decode_netcdf
from src.terrain_ingest.options import DEFAULT_OPTIONS, DecodeOptions
from src.terrain_ingest.usgs_dem import decode_usgs_dem
from src.terrain_ingest.worldfile import decode_image_with_world_file
from src.terrain_ingest.xyz import decode_xyz

logger = logging.getLogger(__name__)

Companion = Union[str, bytes, None]
Decoder = Callable[[BufferLike, str, Companion, DecodeOptions], ElevationGrid]


def _raster(label):
    def decoder(buffer, file_name, companion, options):
        return decode_geotiff(buffer, format_name=label)

    return decoder


_DECODERS: Dict[str, Decoder] = {
    "geotiff": _raster("GeoTIFF"),
    "cog": _raster("Cloud Optimized GeoTIFF"),
    "erdas": _raster("ERDAS Imagine"),
    "xyz": lambda buffer, file_name, companion, options: decode_xyz(buffer, options),
    "usgsdem": lambda buffer, file_name, companion, options: decode_usgs_dem(buffer),
    "dted": lambda buffer, file_name, companion, options: decode_dted(buffer, file_name),
    "netcdf": lambda buffer, file_name, companion, options: decode_netcdf(buffer),
    "worldfile": lambda buffer, file_name, companion, options: decode_image_with_world_file(buffer, companion),
    "las": lambda buffer, file_name, companion, options: decode_las(buffer, options),
}


def decode(
    file_name: str,
    buffer: BufferLike,
    companion: Companion = None,
    options: Optional[DecodeOptions] = None,
) -> ElevationGrid:
    """
    Decode an elevation file held in memory.

    Args:
        file_name: Name used for format detection (only the extension matters,
            plus the DTED level digit)
        buffer: Complete file contents
        companion: World-file text for image formats; ignored otherwise
        options: DecodeOptions; defaults apply when None

    Returns:
        ElevationGrid

    Raises:
        UnsupportedFormatError: Unknown extension, or a recognized format with
            no decoder (the error carries conversion guidance)
        StructuralError: Signature or header cannot be read
        EmptyDatasetError: No usable samples
    """
    options = options or DEFAULT_OPTIONS
    descriptor = detect_format(file_name)

    decoder = _DECODERS.get(descriptor.id) if descriptor.supported else None
    if decoder is None:
        raise UnsupportedFormatError(
            f"Cannot decode '{file_name}' ({descriptor.display_name}). {descriptor.guidance_text}",
            descriptor,
        )

    logger.debug(f"Decoding {file_name} as {descriptor.display_name} ({len(buffer):,} bytes)")
    grid = decoder(buffer, file_name, companion, options)

    if grid.degraded:
        logger.warning(f"{file_name}: dimensions were inferred; grid is flagged degraded")
    logger.info(f"Decoded {file_name}: {grid.width}x{grid.height} [{grid.format_label}]")
    return grid


def find_world_file(image_path: Union[str, Path]) -> Optional[Path]:
    """First existing world-file sidecar next to an image, or None."""
    for candidate in world_file_candidates(str(image_path)):
        path = Path(candidate)
        if path.is_file():
            return path
    return None


def decode_file(
    path: Union[str, Path],
    companion_path: Union[str, Path, None] = None,
    options: Optional[DecodeOptions] = None,
) -> ElevationGrid:
    """
    Read and decode a file from disk.

    For image formats the world file is taken from ``companion_path`` or,
    when omitted, from the first conventional sidecar found beside the image.

    Raises:
        FileNotFoundError: The file does not exist
        DecodeError subclasses: see ``decode``
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"No such file: {path}")

    companion = None
    if detect_format(path.name).id == "worldfile":
        sidecar = Path(companion_path) if companion_path is not None else find_world_file(path)
        if sidecar is not None:
            logger.debug(f"Using world file {sidecar}")
            companion = sidecar.read_text(encoding="utf-8", errors="replace")

    return decode(path.name, path.read_bytes(), companion, options)


def decode_files(
    paths: Iterable[Union[str, Path]],
    max_workers: int = 4,
    options: Optional[DecodeOptions] = None,
) -> Iterator[Tuple[Path, Union[ElevationGrid, Exception]]]:
    """
    Decode several files concurrently.

    Yields ``(path, result)`` in completion order, where result is either the
    grid or the exception that decoding raised. Only decode and I/O errors
    are captured; anything else propagates.
    """
    paths = [Path(p) for p in paths]
    options = options or DEFAULT_OPTIONS

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(decode_file, p, None, options): p for p in paths}
        completed = as_completed(futures)
        if options.show_progress:
            completed = tqdm(completed, total=len(futures), desc="Decoding files")
        for future in completed:
            path = futures[future]
            try:
                yield path, future.result()
            except (ValueError, OSError) as e:
                logger.warning(f"Failed to decode {path}: {e}")
                yield path, e
