"""
Slicing session: the loaded source, its grid and page navigation.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .geometry import GridGeometry
from .pages import PageStateStore


class SlicingSession(BaseModel):
    """State of one image or PDF being sliced."""

    id: str
    source_path: Path
    image_name: str = ""
    is_document: bool = False
    total_pages: int = 1
    current_page: int = 0
    grid: GridGeometry = Field(default_factory=GridGeometry)
    pages: PageStateStore = Field(default_factory=PageStateStore)
    output_dir: Optional[Path] = None
    created_at: datetime
    updated_at: datetime

    @property
    def can_go_next(self) -> bool:
        return self.is_document and self.current_page < self.total_pages - 1

    @property
    def can_go_previous(self) -> bool:
        return self.is_document and self.current_page > 0

    def go_to_page(self, page_index: int) -> bool:
        """
        Switch to another page of a document.

        The current grid is saved for the page being left, then the grid
        for the target page is resolved from the saved snapshots.

        Returns:
            False if the session is not a document or the index is out of range.
        """
        if not self.is_document or not (0 <= page_index < self.total_pages):
            return False
        if page_index == self.current_page:
            return True

        self.pages.save(self.current_page, self.grid)
        self.grid = self.pages.resolve(page_index, self.grid)
        self.current_page = page_index
        return True

    def next_page(self) -> bool:
        if not self.can_go_next:
            return False
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> bool:
        if not self.can_go_previous:
            return False
        return self.go_to_page(self.current_page - 1)

    def copy_settings_to_all_pages(self) -> int:
        """Apply the current grid to every page. Returns the page count."""
        if not self.is_document:
            return 0
        self.pages.save(self.current_page, self.grid)
        self.pages.copy_to_all(self.grid, self.total_pages)
        return self.total_pages

    def page_grid_for_export(self, page_index: int) -> GridGeometry:
        """Grid used to export a page: its saved snapshot or the current grid."""
        if page_index == self.current_page:
            return self.grid.snapshot()
        return self.pages.state_for_export(page_index, self.grid)

    @property
    def pages_with_settings(self) -> int:
        return self.pages.settings_count(self.current_page, self.grid)

    def reset_grid(self) -> None:
        """Clear dividers and excluded regions."""
        self.grid.reset()

    def status_line(self) -> str:
        """One-line summary, e.g. ``4 regions | Page 1/3 | Output: out``."""
        count = self.grid.region_count
        status = f"{count} region{'' if count == 1 else 's'}"
        if self.is_document:
            status += f" | Page {self.current_page + 1}/{self.total_pages}"
        folder = self.output_dir.name if self.output_dir else "Not selected"
        status += f" | Output: {folder}"
        return status
