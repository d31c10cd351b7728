from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from gridslicer.grid.geometry import Axis, GridGeometry


class RegionInfo(BaseModel):
    """A computed crop region as shown to clients."""

    ordinal: int = Field(description="1-based position in row-major order")
    row: int
    column: int
    x: float
    y: float
    width: float
    height: float
    excluded: bool = False


class SessionResponse(BaseModel):
    """Full state of a slicing session."""

    id: str
    image_name: str
    is_document: bool
    total_pages: int
    current_page: int
    can_go_next: bool
    can_go_previous: bool
    pages_with_settings: int
    grid: GridGeometry
    regions: list[RegionInfo]
    row_count: int
    column_count: int
    region_count: int
    exportable_region_count: int
    excluded_region_count: int
    output_dir: Path | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class AddDividerRequest(BaseModel):
    """Request to add a divider."""

    axis: Axis
    position: float | None = Field(
        default=None,
        description="Normalized position; omitted means the middle of the widest gap",
    )


class MoveDividerRequest(BaseModel):
    """Request to move a single divider."""

    position: float


class ShiftDividersRequest(BaseModel):
    """Request to move all dividers on an axis."""

    delta: float


class EvenDividersRequest(BaseModel):
    """Request to create evenly spaced dividers."""

    count: int = Field(ge=0, le=100)


class ExclusionsRequest(BaseModel):
    """Exclusion margins to set; omitted sides stay unchanged."""

    header: float | None = None
    footer: float | None = None
    left: float | None = None
    right: float | None = None


class OutputDirRequest(BaseModel):
    """Request to choose the output directory."""

    output_dir: Path


class DetectRequest(BaseModel):
    """Request to detect borders; a missing count falls back to settings."""

    columns: int | None = Field(default=None, ge=1, le=100)
    rows: int | None = Field(default=None, ge=1, le=100)
