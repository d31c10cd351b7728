"""
Source loading for images and PDF documents.

This service handles:
- Opening raster images with Pillow
- Opening PDFs with PyMuPDF and rendering single pages on demand
- Mapping unreadable or unsupported files to ImageLoadFailure
"""

import logging
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image
from pillow_heif import register_heif_opener

from gridslicer.config import settings
from gridslicer.export.errors import ImageLoadFailure

logger = logging.getLogger(__name__)

# Lets Pillow open HEIC photos
register_heif_opener()

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "tiff", "tif", "bmp", "gif", "heic", "webp"}
DOCUMENT_EXTENSIONS = {"pdf"}
SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS


def is_supported(path: Path) -> bool:
    """Check whether a file extension can be loaded."""
    return Path(path).suffix.lower().lstrip(".") in SUPPORTED_EXTENSIONS


class SourceDocument:
    """A loaded image or PDF that can render its pages to Pillow images."""

    def __init__(self, path: Path, page_count: int, is_document: bool):
        """
        Initialize a source.

        Args:
            path: Path to the source file.
            page_count: Number of pages (1 for plain images).
            is_document: Whether the source is a multi-page document.
        """
        self.path = Path(path)
        self.page_count = page_count
        self.is_document = is_document

    @property
    def name(self) -> str:
        """File name without extension."""
        return self.path.stem

    def render_page(self, page_index: int = 0, scale: float | None = None) -> Image.Image:
        """
        Render a page as an RGB image.

        Args:
            page_index: 0-based page index. Plain images only have page 0.
            scale: Render scale for PDF pages (default from settings).

        Returns:
            PIL Image in RGB mode.

        Raises:
            ImageLoadFailure: If the page cannot be produced.
        """
        if not 0 <= page_index < self.page_count:
            raise ImageLoadFailure(
                f"Page {page_index + 1} out of range (document has {self.page_count})"
            )

        if self.is_document:
            return render_pdf_page(self.path, page_index, scale or settings.export.pdf_render_scale)
        return load_image(self.path)

    def __repr__(self) -> str:
        return (
            f"SourceDocument(path={self.path}, pages={self.page_count}, "
            f"document={self.is_document})"
        )


def load_image(path: Path) -> Image.Image:
    """
    Load a raster image as RGB.

    Raises:
        ImageLoadFailure: If the file cannot be decoded.
    """
    try:
        with Image.open(path) as img:
            return img.convert("RGB")
    except Exception as e:
        raise ImageLoadFailure(f"Failed to load image from: {Path(path).name}") from e


def render_pdf_page(path: Path, page_index: int, scale: float = 2.0) -> Image.Image:
    """
    Render one PDF page on a white background.

    Args:
        path: Path to the PDF.
        page_index: 0-based page index.
        scale: Zoom factor relative to the page's point size.

    Returns:
        PIL Image in RGB mode.

    Raises:
        ImageLoadFailure: If the document or page cannot be rendered.
    """
    doc = None
    try:
        doc = fitz.open(path)
        page = doc[page_index]
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

        logger.debug(
            f"Rendered page {page_index + 1}/{doc.page_count} of {Path(path).name}: "
            f"{pix.width}x{pix.height}px"
        )
        return image

    except Exception as e:
        raise ImageLoadFailure(
            f"Failed to render page {page_index + 1} of {Path(path).name}: {e}"
        ) from e
    finally:
        if doc:
            doc.close()


def load_source(path: Path) -> SourceDocument:
    """
    Open an image or PDF.

    Args:
        path: Path to the source file.

    Returns:
        SourceDocument describing the file.

    Raises:
        ImageLoadFailure: If the file is unsupported, empty or unreadable.
    """
    path = Path(path)
    extension = path.suffix.lower().lstrip(".")

    if extension in DOCUMENT_EXTENSIONS:
        try:
            with fitz.open(path) as doc:
                page_count = doc.page_count
        except Exception as e:
            raise ImageLoadFailure(f"Failed to load PDF from: {path.name}") from e

        if page_count == 0:
            raise ImageLoadFailure(f"PDF has no pages: {path.name}")

        logger.info(f"Loaded PDF {path.name} with {page_count} pages")
        return SourceDocument(path, page_count=page_count, is_document=True)

    try:
        with Image.open(path) as img:
            img.verify()
    except Exception as e:
        raise ImageLoadFailure(f"Failed to load image from: {path.name}") from e

    logger.info(f"Loaded image {path.name}")
    return SourceDocument(path, page_count=1, is_document=False)
