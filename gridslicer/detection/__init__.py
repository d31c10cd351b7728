"""
Automatic border detection.

Builds a gradient edge map, scores every column and row by its mean edge
strength and keeps the strongest well-separated peaks as divider candidates.
"""

from .base import DetectionConfig, DetectionResult
from .border import BorderDetector, detect_borders, detect_grid_borders
from .peaks import find_strongest_peaks, local_maxima

__all__ = [
    "DetectionConfig",
    "DetectionResult",
    "BorderDetector",
    "detect_borders",
    "detect_grid_borders",
    "find_strongest_peaks",
    "local_maxima",
]
