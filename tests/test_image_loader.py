import io
from pathlib import Path

import pytest

from gridslicer.export import ImageLoadFailure
from gridslicer.services.image_loader import is_supported, load_source
from gridslicer.utils.file_validation import (
    FileType,
    ValidationError,
    detect_file_type_from_bytes,
    file_type_for_name,
    resolve_output_dir,
    validate_export_name,
    validate_file,
    validate_filename,
)


class TestLoadSource:
    def test_image_has_one_page(self, png_path):
        source = load_source(png_path)

        assert not source.is_document
        assert source.page_count == 1
        assert source.name == "sheet"

        image = source.render_page()
        assert image.mode == "RGB"
        assert image.size == (400, 300)

    def test_pdf_pages_render_at_scale(self, pdf_path):
        source = load_source(pdf_path)

        assert source.is_document
        assert source.page_count == 3

        page = source.render_page(2, scale=2.0)
        assert page.mode == "RGB"
        assert page.size == (400, 200)
        # White background, no alpha
        assert page.getpixel((0, 0)) == (255, 255, 255)

    def test_page_out_of_range(self, pdf_path):
        with pytest.raises(ImageLoadFailure):
            load_source(pdf_path).render_page(3)

    def test_unreadable_image(self, tmp_path):
        broken = tmp_path / "broken.jpg"
        broken.write_bytes(b"definitely not a jpeg")

        with pytest.raises(ImageLoadFailure, match="broken.jpg"):
            load_source(broken)

    def test_unreadable_pdf(self, tmp_path):
        broken = tmp_path / "broken.pdf"
        broken.write_bytes(b"%PDF-garbage")

        with pytest.raises(ImageLoadFailure):
            load_source(broken)

    def test_supported_extensions(self, tmp_path):
        for name in ["a.PDF", "b.png", "c.jpeg", "d.tif", "e.heic", "f.webp"]:
            assert is_supported(tmp_path / name)
        assert not is_supported(tmp_path / "notes.txt")


class TestFileValidation:
    def test_file_type_for_name(self):
        assert file_type_for_name("scan.pdf") == FileType.PDF
        assert file_type_for_name("scan.JPG") == FileType.IMAGE
        assert file_type_for_name("scan.docx") == FileType.UNKNOWN

    def test_magic_bytes(self):
        assert detect_file_type_from_bytes(b"\x89PNG\r\n\x1a\n....") == FileType.IMAGE
        assert detect_file_type_from_bytes(b"%PDF-1.7") == FileType.PDF
        assert detect_file_type_from_bytes(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == FileType.IMAGE
        assert detect_file_type_from_bytes(b"RIFF\x00\x00\x00\x00WAVEfmt ") == FileType.UNKNOWN
        assert detect_file_type_from_bytes(b"\x00\x00\x00\x18ftypheic") == FileType.IMAGE

    def test_valid_png(self, png_path):
        with open(png_path, "rb") as f:
            validate_file(f, expected_type=FileType.IMAGE)

    def test_valid_pdf(self, pdf_path):
        with open(pdf_path, "rb") as f:
            validate_file(f, expected_type=FileType.PDF)

    def test_type_mismatch(self, pdf_path):
        with open(pdf_path, "rb") as f:
            with pytest.raises(ValidationError, match="mismatch"):
                validate_file(f, expected_type=FileType.IMAGE)

    def test_empty_and_oversized(self):
        with pytest.raises(ValidationError, match="empty"):
            validate_file(io.BytesIO(b""), expected_type=FileType.IMAGE)

        big = io.BytesIO(b"\x89PNG\r\n\x1a\n" + b"\x00" * (1024 * 1024 + 1))
        with pytest.raises(ValidationError, match="too large"):
            validate_file(big, expected_type=FileType.IMAGE, max_size_mb=1)

    def test_corrupt_image(self):
        data = io.BytesIO(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
        with pytest.raises(ValidationError, match="not a valid image"):
            validate_file(data, expected_type=FileType.IMAGE)

    def test_filename_sanitising(self):
        assert validate_filename("../../etc/scan.png") == "scan.png"
        with pytest.raises(ValidationError):
            validate_filename("")
        with pytest.raises(ValidationError):
            validate_filename(".hidden.png")


class TestExportTargets:
    def test_export_names_are_kept_as_given(self):
        assert validate_export_name("Card A") == "Card A"
        assert validate_export_name("scan-1.png") == "scan-1.png"

    @pytest.mark.parametrize("name", ["", "  ", ".", "..", "../escaped", "a/b/c", "/abs", "dir\\file"])
    def test_export_names_with_folders_are_rejected(self, name):
        with pytest.raises(ValidationError):
            validate_export_name(name)

    def test_output_dir_relative_to_root(self, tmp_path):
        root = tmp_path / "output"
        assert resolve_output_dir(Path("batch/one"), root) == (root / "batch" / "one").resolve()
        assert resolve_output_dir(root / "two", root) == (root / "two").resolve()
        assert resolve_output_dir(Path("."), root) == root.resolve()

    @pytest.mark.parametrize("requested", ["..", "../sibling", "batch/../../up"])
    def test_output_dir_cannot_escape_root(self, tmp_path, requested):
        with pytest.raises(ValidationError, match="inside"):
            resolve_output_dir(Path(requested), tmp_path / "output")

    def test_absolute_output_dir_outside_root(self, tmp_path):
        with pytest.raises(ValidationError):
            resolve_output_dir(tmp_path / "elsewhere", tmp_path / "output")
