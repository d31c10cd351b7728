"""
Export planning and execution for crop regions.
"""

from .errors import (
    CropFailure,
    ExportInProgressError,
    GridSlicerError,
    ImageLoadFailure,
    NoRegionsError,
    SaveFailure,
)
from .exporter import crop_and_save, export_plan, export_regions, pixel_rect
from .planner import (
    ExportItem,
    ExportPlan,
    ExportPreview,
    NamingMode,
    PlannedExport,
    ensure_png_extension,
    plan_export,
)

__all__ = [
    "CropFailure",
    "ExportInProgressError",
    "GridSlicerError",
    "ImageLoadFailure",
    "NoRegionsError",
    "SaveFailure",
    "crop_and_save",
    "export_plan",
    "export_regions",
    "pixel_rect",
    "ExportItem",
    "ExportPlan",
    "ExportPreview",
    "NamingMode",
    "PlannedExport",
    "ensure_png_extension",
    "plan_export",
]
