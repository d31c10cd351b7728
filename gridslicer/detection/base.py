"""
Base types for border detection.
"""

from dataclasses import dataclass, field


@dataclass
class DetectionConfig:
    """Configuration for border detection."""

    max_lines: int = 8
    """Maximum number of lines accepted per axis."""

    min_spacing: float = 0.08
    """Minimum distance between accepted lines, as a fraction of the dimension."""

    edge_margin: float = 0.03
    """Lines within this fraction of the image border are discarded."""

    @classmethod
    def for_grid(cls, columns: int, rows: int, edge_margin: float = 0.03) -> "DetectionConfig":
        """
        Derive line count and spacing from an expected grid size.

        Args:
            columns: Expected number of columns.
            rows: Expected number of rows.
            edge_margin: Border margin for discarding lines.

        Returns:
            DetectionConfig tuned for the grid.
        """
        cells = max(columns, rows)
        return cls(
            max_lines=cells - 1,
            min_spacing=1.0 / (cells + 1) * 0.8,
            edge_margin=edge_margin,
        )


@dataclass
class DetectionResult:
    """Detected divider candidates, normalized to 0-1."""

    vertical: list[float] = field(default_factory=list)
    """X positions of vertical lines."""

    horizontal: list[float] = field(default_factory=list)
    """Y positions of horizontal lines."""

    width: int = 0
    """Width of the analyzed image (0 if it could not be read)."""

    height: int = 0
    """Height of the analyzed image (0 if it could not be read)."""

    @property
    def total_lines(self) -> int:
        return len(self.vertical) + len(self.horizontal)

    @property
    def status_message(self) -> str:
        """Human readable summary of the detection."""
        if self.total_lines > 0:
            return (
                f"Detected {len(self.vertical)} vertical and "
                f"{len(self.horizontal)} horizontal lines"
            )
        return "No borders detected. Try adding lines manually."
