"""
Validation of client input that touches the filesystem.

Uploaded sources are checked by extension, size, signature and finally by
opening them with the library that will render them (Pillow or PyMuPDF).
Export names and output folders chosen by the client are checked so that
exports stay inside the configured output directory.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from PIL import Image
import fitz  # PyMuPDF

from gridslicer.services.image_loader import DOCUMENT_EXTENSIONS, IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
SIGNATURE_LENGTH = 32


class FileType(str, Enum):
    """Kinds of source files that can be sliced."""

    IMAGE = "image"
    PDF = "pdf"
    UNKNOWN = "unknown"


# Leading bytes of each accepted format. RIFF and ftyp containers need a
# second look at the brand, see detect_file_type_from_bytes.
SIGNATURES = [
    (b"%PDF-", FileType.PDF),
    (b"\x89PNG\r\n\x1a\n", FileType.IMAGE),
    (b"\xff\xd8\xff", FileType.IMAGE),  # JPEG
    (b"GIF87a", FileType.IMAGE),
    (b"GIF89a", FileType.IMAGE),
    (b"II*\x00", FileType.IMAGE),  # TIFF, little-endian
    (b"MM\x00*", FileType.IMAGE),  # TIFF, big-endian
    (b"BM", FileType.IMAGE),
]

HEIF_BRANDS = {b"heic", b"heix", b"hevc", b"hevx", b"mif1", b"msf1"}


class ValidationError(Exception):
    """Raised when client input is rejected."""

    pass


def file_type_for_name(filename: str) -> FileType:
    """Map a filename's extension to a FileType."""
    extension = Path(filename).suffix.lower().lstrip(".")
    if extension in DOCUMENT_EXTENSIONS:
        return FileType.PDF
    if extension in IMAGE_EXTENSIONS:
        return FileType.IMAGE
    return FileType.UNKNOWN


def detect_file_type_from_bytes(header: bytes) -> FileType:
    """
    Identify a source file from its first bytes.

    Args:
        header: Leading bytes of the file (12 or more for WebP and HEIC).

    Returns:
        FileType.IMAGE, FileType.PDF or FileType.UNKNOWN.
    """
    for signature, file_type in SIGNATURES:
        if header.startswith(signature):
            return file_type

    container, brand = header[:4], header[8:12]
    if container == b"RIFF" and brand == b"WEBP":
        return FileType.IMAGE
    if header[4:8] == b"ftyp" and brand in HEIF_BRANDS:
        return FileType.IMAGE

    return FileType.UNKNOWN


def _decodes_as_image(file_obj: BinaryIO) -> bool:
    file_obj.seek(0)
    try:
        Image.open(file_obj).verify()
    except Exception as e:
        logger.debug(f"Pillow could not decode upload: {e}")
        return False
    finally:
        file_obj.seek(0)
    return True


def _opens_as_pdf(file_obj: BinaryIO) -> bool:
    file_obj.seek(0)
    data = file_obj.read()
    file_obj.seek(0)
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            if doc.page_count == 0:
                logger.warning("Uploaded PDF has no pages")
                return False
            doc.load_page(0)
    except Exception as e:
        logger.debug(f"PyMuPDF could not open upload: {e}")
        return False
    return True


def validate_file(
    file_obj: BinaryIO,
    expected_type: FileType,
    max_size_mb: int = 100,
) -> None:
    """
    Validate an uploaded source against the type its extension implies.

    Args:
        file_obj: Seekable upload stream.
        expected_type: FileType.IMAGE or FileType.PDF.
        max_size_mb: Size limit in megabytes.

    Raises:
        ValidationError: Describing the first check that failed.
    """
    if expected_type == FileType.UNKNOWN:
        raise ValidationError("Unsupported file extension")

    file_obj.seek(0, 2)
    size = file_obj.tell()
    file_obj.seek(0)
    if size == 0:
        raise ValidationError("File is empty")
    if size > max_size_mb * 1024 * 1024:
        raise ValidationError(f"File too large: {size / 1024 / 1024:.1f}MB (max {max_size_mb}MB)")

    detected = detect_file_type_from_bytes(file_obj.read(SIGNATURE_LENGTH))
    file_obj.seek(0)
    if detected == FileType.UNKNOWN:
        raise ValidationError("Unknown or unsupported file type")
    if detected != expected_type:
        raise ValidationError(
            f"File type mismatch: expected {expected_type.value}, detected {detected.value}"
        )

    if expected_type == FileType.IMAGE and not _decodes_as_image(file_obj):
        raise ValidationError("File is not a valid image")
    if expected_type == FileType.PDF and not _opens_as_pdf(file_obj):
        raise ValidationError("File is not a valid PDF")

    logger.info(f"Accepted {expected_type.value} upload ({size / 1024:.1f}KB)")


def validate_filename(filename: str) -> str:
    """
    Reduce an uploaded filename to its last component.

    Raises:
        ValidationError: If nothing usable is left, or the name is hidden
            or too long.
    """
    if not filename:
        raise ValidationError("Filename cannot be empty")

    name = Path(filename).name
    if not name:
        raise ValidationError("Invalid filename")
    if ".." in name or name.startswith("."):
        raise ValidationError("Invalid filename pattern")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Filename too long (max {MAX_NAME_LENGTH} characters)")
    return name


def validate_export_name(name: str) -> str:
    """
    Check a client-chosen export filename or base name.

    Unlike uploads, export names are not rewritten: a name that is not a
    single path component is rejected.

    Raises:
        ValidationError: If the name is blank, contains a directory part or
            is too long.
    """
    if not name.strip():
        raise ValidationError("Filename cannot be empty")
    if "\\" in name or name in (".", "..") or Path(name).name != name:
        raise ValidationError(f"Filename must not contain a folder: {name!r}")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Filename too long (max {MAX_NAME_LENGTH} characters)")
    return name


def resolve_output_dir(requested: Path, root: Path) -> Path:
    """
    Resolve a requested export folder inside ``root``.

    Relative folders are taken from ``root``; absolute ones must already
    lie inside it.

    Raises:
        ValidationError: If the folder resolves outside ``root``.
    """
    root = Path(root).resolve()
    target = (root / requested).resolve()
    if target != root and root not in target.parents:
        raise ValidationError(f"Output folder must be inside {root}")
    return target
