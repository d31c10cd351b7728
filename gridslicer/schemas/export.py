from pathlib import Path

from pydantic import BaseModel, Field


class PreviewItem(BaseModel):
    """One exportable region with its proposed filename."""

    index: int = Field(description="0-based position among exportable regions")
    row: int
    column: int
    filename: str
    selected: bool = True


class PreviewResponse(BaseModel):
    """Export preview for the current page."""

    base_filename: str
    items: list[PreviewItem]


class BaseNameRequest(BaseModel):
    """Request to regenerate preview names from a base name."""

    base_name: str


class BaseNameResponse(BaseModel):
    """Names produced from a base name."""

    names: list[str]


class ExportItemRequest(BaseModel):
    """A preview item to export under a chosen name."""

    index: int = Field(ge=0)
    filename: str = Field(min_length=1)
    selected: bool = True


class PreviewExportRequest(BaseModel):
    """Interactive export of named preview items."""

    items: list[ExportItemRequest]
    output_dir: Path | None = None


class DirectExportRequest(BaseModel):
    """Direct export with row/column filenames."""

    base_name: str | None = None
    output_dir: Path | None = None
