"""
Export planning: mapping crop regions to output filenames.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from gridslicer.grid.geometry import CropRegion
from gridslicer.naming.sequencer import sequence

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "image"
PNG_SUFFIX = ".png"


class NamingMode(str, Enum):
    """How exported files are named."""

    SEQUENTIAL = "sequential"
    ROW_COLUMN = "row_column"
    CUSTOM = "custom"


def ensure_png_extension(filename: str) -> str:
    """Append ``.png`` unless the name already ends with it (case-sensitive)."""
    if filename.endswith(PNG_SUFFIX):
        return filename
    return f"{filename}{PNG_SUFFIX}"


@dataclass
class PlannedExport:
    """A region and the file it will be written to."""

    region: CropRegion
    filename: str
    path: Path


@dataclass
class ExportPlan:
    """Ordered list of region -> file assignments."""

    entries: list[PlannedExport] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def filenames(self) -> list[str]:
        return [entry.filename for entry in self.entries]

    def duplicate_filenames(self) -> list[str]:
        """Filenames that appear more than once (later writes overwrite earlier ones)."""
        counts = Counter(self.filenames)
        return [name for name, count in counts.items() if count > 1]


def plan_export(
    regions: list[CropRegion],
    base_name: str,
    output_dir: Path,
    mode: NamingMode = NamingMode.SEQUENTIAL,
    names: Optional[list[str]] = None,
) -> ExportPlan:
    """
    Assign an output filename to each region.

    Args:
        regions: Regions to export, already filtered for exclusions.
        base_name: Base name for generated names. Empty means ``image``.
        output_dir: Destination directory.
        mode: Naming mode.
        names: Per-region names for ``NamingMode.CUSTOM``.

    Returns:
        ExportPlan in region order. Duplicate names are kept as-is.

    Raises:
        ValueError: If custom names are missing or their count does not
            match the regions, or a filename has a folder part.
    """
    base = base_name or DEFAULT_BASE_NAME

    if mode == NamingMode.ROW_COLUMN:
        filenames = [region.filename(base) for region in regions]
    elif mode == NamingMode.CUSTOM:
        if names is None or len(names) != len(regions):
            raise ValueError(
                f"Custom naming needs one name per region "
                f"({len(regions)} regions, {0 if names is None else len(names)} names)"
            )
        filenames = list(names)
    else:
        filenames = [f"{base}-{index + 1}" for index in range(len(regions))]

    filenames = [ensure_png_extension(name) for name in filenames]
    for filename in filenames:
        # Every file lands directly in output_dir
        if Path(filename).name != filename or "\\" in filename:
            raise ValueError(f"Export filename must not contain a folder: {filename!r}")

    output_dir = Path(output_dir)
    plan = ExportPlan(
        entries=[
            PlannedExport(region=region, filename=filename, path=output_dir / filename)
            for region, filename in zip(regions, filenames)
        ]
    )

    duplicates = plan.duplicate_filenames()
    if duplicates:
        logger.warning(f"Export plan has duplicate filenames: {duplicates}")

    return plan


@dataclass
class ExportItem:
    """A region in the export preview with its editable filename."""

    region: CropRegion
    filename: str
    selected: bool = True


class ExportPreview:
    """
    Editable list of regions to export.

    Items start with sequential names ``base-1, base-2, ...`` and all
    selected. Names can be regenerated from a new base name, edited one by
    one, and items can be deselected.
    """

    def __init__(self, regions: list[CropRegion], base_name: str = ""):
        base = base_name or DEFAULT_BASE_NAME
        self.base_filename = f"{base}-1"
        self.items = [
            ExportItem(region=region, filename=f"{base}-{index + 1}")
            for index, region in enumerate(regions)
        ]

    @property
    def selected_count(self) -> int:
        return sum(1 for item in self.items if item.selected)

    def apply_base_filename(self, base: str) -> list[str]:
        """Rename every item from a base name using the sequencer."""
        self.base_filename = base
        names = sequence(base, len(self.items))
        for item, name in zip(self.items, names):
            item.filename = name
        return names

    def rename(self, index: int, filename: str) -> None:
        self.items[index].filename = filename

    def set_selected(self, index: int, selected: bool) -> None:
        self.items[index].selected = selected

    def select_all(self) -> None:
        for item in self.items:
            item.selected = True

    def select_none(self) -> None:
        for item in self.items:
            item.selected = False

    def to_plan(self, output_dir: Path) -> ExportPlan:
        """Plan for the selected items, using their current names."""
        selected = [item for item in self.items if item.selected]
        return plan_export(
            [item.region for item in selected],
            self.base_filename,
            output_dir,
            mode=NamingMode.CUSTOM,
            names=[item.filename for item in selected],
        )
