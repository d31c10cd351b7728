"""
Errors raised while loading sources and exporting regions.
"""

from gridslicer.grid.geometry import CropRegion


class GridSlicerError(Exception):
    """Base class for slicing errors."""

    pass


class ImageLoadFailure(GridSlicerError):
    """Raised when a source image or document cannot be read."""

    pass


class CropFailure(GridSlicerError):
    """Raised when a region could not be cropped from the source."""

    def __init__(self, region: CropRegion):
        self.region = region
        super().__init__(
            f"Failed to crop region at row {region.row + 1}, column {region.column + 1}."
        )


class SaveFailure(GridSlicerError):
    """Raised when a cropped region could not be written."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Failed to save file: {filename}. {reason}")


class NoRegionsError(GridSlicerError):
    """Raised when an export is requested without any regions."""

    def __init__(self):
        super().__init__("No regions to export.")


class ExportInProgressError(GridSlicerError):
    """Raised when an export is requested while another one is running."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"An export is already running for session {session_id}.")
