"""
Grid geometry: divider positions, exclusion margins and crop regions.

All positions are normalized to the 0-1 range of the image width (vertical
dividers, left/right margins) or height (horizontal dividers, header/footer
margins). Crop regions are derived on demand and never stored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

DIVIDER_MIN = 0.01
DIVIDER_MAX = 0.99
EXCLUSION_MAX = 0.4
MIN_REGION_SIZE = 0.001


class Axis(str, Enum):
    """Orientation of a divider line."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class Side(str, Enum):
    """Edge of the image an exclusion margin belongs to."""

    HEADER = "header"
    FOOTER = "footer"
    LEFT = "left"
    RIGHT = "right"


class NormalizedRect(NamedTuple):
    """Rectangle in normalized (0-1) image coordinates."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CropRegion:
    """A single crop region of the grid."""

    row: int
    """Row position in the grid (0-indexed)."""

    column: int
    """Column position in the grid (0-indexed)."""

    rect: NormalizedRect
    """Region bounds in normalized coordinates."""

    def pixel_rect(self, width: float, height: float) -> tuple[float, float, float, float]:
        """Scale the normalized rect to pixel coordinates (x, y, width, height)."""
        return (
            self.rect.x * width,
            self.rect.y * height,
            self.rect.width * width,
            self.rect.height * height,
        )

    def filename(self, base_name: str) -> str:
        """Filename used by direct export."""
        return f"{base_name}_row{self.row + 1}_col{self.column + 1}.png"


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def largest_gap_midpoint(positions: list[float]) -> float:
    """
    Find the midpoint of the widest gap between dividers.

    The image borders 0.0 and 1.0 take part as virtual dividers. When
    several gaps share the maximum width the first one wins.

    Args:
        positions: Existing divider positions (any order).

    Returns:
        Midpoint of the widest gap.
    """
    bounds = [0.0] + sorted(positions) + [1.0]
    max_gap = 0.0
    best = 0.5

    for start, end in zip(bounds[:-1], bounds[1:]):
        gap = end - start
        if gap > max_gap:
            max_gap = gap
            best = (start + end) / 2

    return best


class GridGeometry(BaseModel):
    """
    Divider and exclusion state of a grid, plus the region math built on it.

    Region ordinals are positional: ordinal ``n`` always means the n-th region
    of the current row-major enumeration. Changing the dividers does not remap
    ``excluded_regions``, so a recorded ordinal may end up pointing at a
    different region.
    """

    vertical_dividers: list[float] = Field(default_factory=list)
    horizontal_dividers: list[float] = Field(default_factory=list)
    header_exclusion: float = 0.0
    footer_exclusion: float = 0.0
    left_exclusion: float = 0.0
    right_exclusion: float = 0.0
    excluded_regions: set[int] = Field(default_factory=set)

    def dividers(self, axis: Axis) -> list[float]:
        """Divider list for an axis (the stored list, not a copy)."""
        if axis == Axis.VERTICAL:
            return self.vertical_dividers
        return self.horizontal_dividers

    def set_dividers(self, axis: Axis, positions: list[float]) -> None:
        """Replace all dividers on an axis, e.g. with detected lines."""
        values = sorted(_clamp(float(p), DIVIDER_MIN, DIVIDER_MAX) for p in positions)
        if axis == Axis.VERTICAL:
            self.vertical_dividers = values
        else:
            self.horizontal_dividers = values

    def add_divider(self, axis: Axis, position: Optional[float] = None) -> float:
        """
        Add a divider on an axis.

        Args:
            axis: Axis to add the divider to.
            position: Normalized position. When omitted, the divider goes to
                the middle of the widest gap.

        Returns:
            The clamped position that was inserted.
        """
        lines = self.dividers(axis)
        if position is None:
            position = largest_gap_midpoint(lines)

        clamped = _clamp(position, DIVIDER_MIN, DIVIDER_MAX)
        lines.append(clamped)
        lines.sort()
        return clamped

    def remove_divider(self, axis: Axis, index: int) -> None:
        lines = self.dividers(axis)
        if 0 <= index < len(lines):
            del lines[index]

    def move_divider(self, axis: Axis, index: int, position: float) -> None:
        """Move one divider. The list is not re-sorted."""
        lines = self.dividers(axis)
        if 0 <= index < len(lines):
            lines[index] = _clamp(position, DIVIDER_MIN, DIVIDER_MAX)

    def move_all_on_axis(self, axis: Axis, delta: float) -> None:
        """Shift every divider on an axis, clamping each one independently."""
        lines = self.dividers(axis)
        for i, value in enumerate(lines):
            lines[i] = _clamp(value + delta, DIVIDER_MIN, DIVIDER_MAX)

    def create_even_dividers(self, axis: Axis, count: int) -> None:
        """Replace the dividers on an axis with ``count`` evenly spaced ones."""
        positions = [i / (count + 1) for i in range(1, count + 1)] if count > 0 else []
        if axis == Axis.VERTICAL:
            self.vertical_dividers = positions
        else:
            self.horizontal_dividers = positions

    def exclusion(self, side: Side) -> float:
        return getattr(self, f"{side.value}_exclusion")

    def set_exclusion(self, side: Side, value: float) -> float:
        """Set an exclusion margin, clamped to [0, 0.4]. Returns the stored value."""
        clamped = _clamp(value, 0.0, EXCLUSION_MAX)
        setattr(self, f"{side.value}_exclusion", clamped)
        return clamped

    def toggle_exclusion(self, ordinal: int) -> bool:
        """
        Toggle whether a region ordinal is excluded from export.

        Returns:
            True if the ordinal is now excluded.
        """
        if ordinal in self.excluded_regions:
            self.excluded_regions.discard(ordinal)
            return False
        self.excluded_regions.add(ordinal)
        return True

    def is_excluded(self, ordinal: int) -> bool:
        return ordinal in self.excluded_regions

    def clear_excluded_regions(self) -> None:
        self.excluded_regions = set()

    def reset(self) -> None:
        """Clear dividers and excluded regions. Margins are kept."""
        self.vertical_dividers = []
        self.horizontal_dividers = []
        self.excluded_regions = set()

    def reset_exclusions(self) -> None:
        """Zero all four margins. Dividers are kept."""
        self.header_exclusion = 0.0
        self.footer_exclusion = 0.0
        self.left_exclusion = 0.0
        self.right_exclusion = 0.0

    def snapshot(self) -> "GridGeometry":
        """Independent copy of the current state."""
        return self.model_copy(deep=True)

    def _effective_vertical(self) -> list[float]:
        right = 1.0 - self.right_exclusion
        return [v for v in self.vertical_dividers if self.left_exclusion < v < right]

    def _effective_horizontal(self) -> list[float]:
        bottom = 1.0 - self.footer_exclusion
        return [h for h in self.horizontal_dividers if self.header_exclusion < h < bottom]

    @property
    def column_count(self) -> int:
        return len(self._effective_vertical()) + 1

    @property
    def row_count(self) -> int:
        return len(self._effective_horizontal()) + 1

    def compute_regions(self) -> list[CropRegion]:
        """
        Compute the crop regions in row-major order.

        Dividers outside the area left by the exclusion margins are ignored.
        Regions narrower or shorter than 0.001 are dropped.

        Returns:
            Regions, ordered row by row, left to right.
        """
        x_positions = (
            [self.left_exclusion]
            + sorted(self._effective_vertical())
            + [1.0 - self.right_exclusion]
        )
        y_positions = (
            [self.header_exclusion]
            + sorted(self._effective_horizontal())
            + [1.0 - self.footer_exclusion]
        )

        regions = []
        for row, (y, y2) in enumerate(zip(y_positions[:-1], y_positions[1:])):
            for col, (x, x2) in enumerate(zip(x_positions[:-1], x_positions[1:])):
                width = x2 - x
                height = y2 - y

                # Slivers from coinciding boundaries
                if width <= MIN_REGION_SIZE or height <= MIN_REGION_SIZE:
                    continue

                regions.append(
                    CropRegion(
                        row=row,
                        column=col,
                        rect=NormalizedRect(x, y, width, height),
                    )
                )

        return regions

    def exportable_regions(self) -> list[CropRegion]:
        """Regions whose ordinal is not in ``excluded_regions``."""
        return [
            region
            for index, region in enumerate(self.compute_regions())
            if (index + 1) not in self.excluded_regions
        ]

    @property
    def region_count(self) -> int:
        return len(self.compute_regions())

    @property
    def exportable_region_count(self) -> int:
        return len(self.exportable_regions())

    @property
    def excluded_region_count(self) -> int:
        return len(self.excluded_regions)
