"""
Per-page grid snapshots for multi-page documents.
"""

from pydantic import BaseModel, Field

from .geometry import GridGeometry


def resolve_page_state(
    states: dict[int, GridGeometry],
    page_index: int,
    current: GridGeometry,
) -> GridGeometry:
    """
    Work out the grid to show when switching to a page.

    Lookup order:
    1. the page's own saved snapshot;
    2. for later pages, the first page's snapshot with excluded regions cleared;
    3. for later pages without a first-page snapshot, the grid being left
       with excluded regions cleared;
    4. for the first page with nothing saved, an empty grid.

    Args:
        states: Saved snapshots keyed by 0-based page index.
        page_index: Page being switched to.
        current: Grid of the page being left.

    Returns:
        A fresh GridGeometry; the inputs are not modified.
    """
    if page_index in states:
        return states[page_index].snapshot()

    if page_index > 0:
        inherited = states[0].snapshot() if 0 in states else current.snapshot()
        inherited.clear_excluded_regions()
        return inherited

    return GridGeometry()


class PageStateStore(BaseModel):
    """Sparse mapping of page index to saved grid snapshot."""

    states: dict[int, GridGeometry] = Field(default_factory=dict)

    def save(self, page_index: int, grid: GridGeometry) -> None:
        self.states[page_index] = grid.snapshot()

    def resolve(self, page_index: int, current: GridGeometry) -> GridGeometry:
        return resolve_page_state(self.states, page_index, current)

    def copy_to_all(self, grid: GridGeometry, total_pages: int) -> None:
        """Store a copy of ``grid`` for every page of the document."""
        for page_index in range(total_pages):
            self.states[page_index] = grid.snapshot()

    def has_settings(self, page_index: int) -> bool:
        return page_index in self.states

    def settings_count(self, current_page: int, current: GridGeometry) -> int:
        """
        Count pages with grid settings.

        The current page counts even before it is saved, as long as it has
        any dividers.
        """
        count = len(self.states)
        if current_page not in self.states and (
            current.vertical_dividers or current.horizontal_dividers
        ):
            count += 1
        return count

    def state_for_export(self, page_index: int, fallback: GridGeometry) -> GridGeometry:
        """Saved snapshot for a page, or ``fallback`` when the page has none."""
        return (self.states.get(page_index) or fallback).snapshot()
