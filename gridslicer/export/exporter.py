"""
Cropping regions out of a source image and writing them as PNG files.

Two export paths exist with different failure handling:

- ``export_regions`` (direct/batch): stops at the first failure and raises.
- ``export_plan`` (interactive preview): logs failed items, keeps going and
  returns how many files were written.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from gridslicer.grid.geometry import CropRegion

from .errors import CropFailure, NoRegionsError, SaveFailure
from .planner import ExportPlan, NamingMode, plan_export

logger = logging.getLogger(__name__)

SourceImage = Union[Image.Image, np.ndarray]


def _as_pil(image: SourceImage) -> Image.Image:
    if isinstance(image, np.ndarray):
        return Image.fromarray(image)
    return image


def pixel_rect(region: CropRegion, width: int, height: int) -> Optional[tuple[int, int, int, int]]:
    """
    Convert a region to an integer pixel rect clamped to the image.

    The origin is floored and the size is ceiled, then the size is limited
    to what is left of the image past the origin.

    Args:
        region: Region in normalized coordinates.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        (x, y, width, height), or None if the clamped rect is empty.
    """
    px, py, pw, ph = region.pixel_rect(width, height)

    x = max(0, math.floor(px))
    y = max(0, math.floor(py))
    w = min(math.ceil(pw), width - math.floor(px))
    h = min(math.ceil(ph), height - math.floor(py))

    if w <= 0 or h <= 0:
        return None
    return (x, y, w, h)


def crop_and_save(image: SourceImage, region: CropRegion, path: Path) -> bool:
    """
    Crop one region and write it as PNG.

    Args:
        image: Source image.
        region: Region to crop.
        path: Destination file.

    Returns:
        True if a file was written, False if the region was empty and skipped.

    Raises:
        CropFailure: If the crop could not be produced.
        SaveFailure: If the file could not be written.
    """
    source = _as_pil(image)
    rect = pixel_rect(region, source.width, source.height)
    if rect is None:
        logger.debug(f"Skipping empty region at row {region.row + 1}, column {region.column + 1}")
        return False

    x, y, w, h = rect
    try:
        cropped = source.crop((x, y, x + w, y + h))
        cropped.load()
    except Exception as e:
        logger.debug(f"Crop failed for {rect}: {e}")
        raise CropFailure(region) from e

    try:
        cropped.save(path, "PNG")
    except Exception as e:
        raise SaveFailure(Path(path).name, str(e)) from e

    return True


def export_regions(
    image: SourceImage,
    regions: list[CropRegion],
    output_dir: Path,
    base_name: str,
) -> int:
    """
    Export regions with ``{base}_row{R}_col{C}.png`` names, aborting on failure.

    Args:
        image: Source image.
        regions: Regions to export.
        output_dir: Destination directory (created if missing).
        base_name: Base filename.

    Returns:
        Number of files written.

    Raises:
        NoRegionsError: If ``regions`` is empty. Nothing is written.
        CropFailure: If any region fails to crop.
        SaveFailure: If any file fails to write.
    """
    if not regions:
        raise NoRegionsError()

    plan = plan_export(regions, base_name, output_dir, mode=NamingMode.ROW_COLUMN)

    try:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SaveFailure(str(output_dir), str(e)) from e

    exported = 0
    for entry in plan:
        if crop_and_save(image, entry.region, entry.path):
            exported += 1

    logger.info(f"Exported {exported} regions to {output_dir}")
    return exported


def export_plan(image: SourceImage, plan: ExportPlan) -> int:
    """
    Export a prepared plan, skipping items that fail.

    Args:
        image: Source image.
        plan: Planned region -> file assignments.

    Returns:
        Number of files written.
    """
    exported = 0
    for entry in plan:
        try:
            entry.path.parent.mkdir(parents=True, exist_ok=True)
            if crop_and_save(image, entry.region, entry.path):
                exported += 1
        except (CropFailure, SaveFailure, OSError) as e:
            logger.warning(f"Skipping {entry.filename}: {e}")

    logger.info(f"Exported {exported} of {len(plan)} files")
    return exported
