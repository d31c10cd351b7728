"""
Border detector that proposes divider positions from image edge content.

Columns and rows crossed by strong straight edges (frame borders, gutters
between panels, ruled lines) get a high mean gradient. The strongest
well-separated peaks of those profiles become divider candidates.
"""

import logging
from typing import Optional

import numpy as np

from .base import DetectionConfig, DetectionResult
from .edges import ImageInput, column_scores, gradient_magnitude, row_scores, to_grayscale
from .peaks import find_strongest_peaks

logger = logging.getLogger(__name__)


class BorderDetector:
    """Detects vertical and horizontal grid lines in an image."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        """
        Initialize the detector.

        Args:
            config: Detection parameters. Defaults to 8 lines, 0.08 spacing.
        """
        self.config = config or DetectionConfig()

    def detect(self, image: ImageInput) -> DetectionResult:
        """
        Detect divider positions.

        Unreadable images are not an error: the result is simply empty.

        Args:
            image: Numpy array, PIL Image, or path.

        Returns:
            DetectionResult with normalized vertical and horizontal positions.
        """
        try:
            gray = to_grayscale(image)
        except Exception as e:
            logger.warning(f"Border detection skipped, image could not be read: {e}")
            return DetectionResult()

        height, width = gray.shape
        edges = gradient_magnitude(gray)

        vertical = self._find_lines(column_scores(edges), width)
        horizontal = self._find_lines(row_scores(edges), height)

        logger.debug(
            f"Border detection on {width}x{height}px: "
            f"{len(vertical)} vertical, {len(horizontal)} horizontal"
        )

        return DetectionResult(
            vertical=vertical,
            horizontal=horizontal,
            width=width,
            height=height,
        )

    def _find_lines(self, scores: np.ndarray, dimension: int) -> list[float]:
        """
        Pick peaks of a profile and normalize them.

        Args:
            scores: Edge-density profile along one axis.
            dimension: Image size along that axis, in pixels.

        Returns:
            Normalized positions inside (edge_margin, 1 - edge_margin).
        """
        min_distance = int(dimension * self.config.min_spacing)
        peaks = find_strongest_peaks(scores, min_distance, self.config.max_lines)

        margin = self.config.edge_margin
        normalized = [peak / dimension for peak in peaks]
        return [p for p in normalized if margin < p < 1.0 - margin]


def detect_borders(
    image: ImageInput,
    max_lines: int = 8,
    min_spacing: float = 0.08,
) -> DetectionResult:
    """
    Detect divider positions with explicit limits.

    Args:
        image: Image to analyze.
        max_lines: Maximum lines per axis.
        min_spacing: Minimum spacing as a fraction of the dimension.

    Returns:
        DetectionResult.
    """
    config = DetectionConfig(max_lines=max_lines, min_spacing=min_spacing)
    return BorderDetector(config).detect(image)


def detect_grid_borders(
    image: ImageInput,
    columns: int = 5,
    rows: int = 5,
) -> DetectionResult:
    """
    Detect divider positions for an expected grid size.

    Args:
        image: Image to analyze.
        columns: Expected number of columns (vertical lines = columns - 1).
        rows: Expected number of rows (horizontal lines = rows - 1).

    Returns:
        DetectionResult.
    """
    return BorderDetector(DetectionConfig.for_grid(columns, rows)).detect(image)
