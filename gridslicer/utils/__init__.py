"""Utility modules for GridSlicer."""

from gridslicer.utils.file_validation import (
    FileType,
    ValidationError,
    file_type_for_name,
    resolve_output_dir,
    validate_export_name,
    validate_file,
    validate_filename,
)

__all__ = [
    "FileType",
    "ValidationError",
    "file_type_for_name",
    "resolve_output_dir",
    "validate_export_name",
    "validate_file",
    "validate_filename",
]
