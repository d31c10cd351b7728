"""
Grid model: dividers, exclusion margins, crop regions and per-page state.
"""

from .geometry import Axis, CropRegion, GridGeometry, NormalizedRect, Side
from .pages import PageStateStore, resolve_page_state
from .session import SlicingSession

__all__ = [
    "Axis",
    "CropRegion",
    "GridGeometry",
    "NormalizedRect",
    "Side",
    "PageStateStore",
    "resolve_page_state",
    "SlicingSession",
]
