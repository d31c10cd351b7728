from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from gridslicer.export import (
    ExportPreview,
    NamingMode,
    NoRegionsError,
    SaveFailure,
    crop_and_save,
    ensure_png_extension,
    export_plan,
    export_regions,
    pixel_rect,
    plan_export,
)
from gridslicer.grid import CropRegion, GridGeometry, NormalizedRect


@pytest.fixture
def quadrants() -> list[CropRegion]:
    return GridGeometry(vertical_dividers=[0.5], horizontal_dividers=[0.5]).compute_regions()


@pytest.fixture
def source_image() -> Image.Image:
    pixels = np.zeros((100, 200, 3), dtype=np.uint8)
    pixels[:, 100:] = (255, 0, 0)
    return Image.fromarray(pixels)


class TestPlanner:
    def test_ensure_png_extension_is_case_sensitive(self):
        assert ensure_png_extension("a") == "a.png"
        assert ensure_png_extension("a.png") == "a.png"
        assert ensure_png_extension("a.PNG") == "a.PNG.png"

    def test_sequential_names(self, quadrants, tmp_path):
        plan = plan_export(quadrants, "scan", tmp_path)
        assert plan.filenames == ["scan-1.png", "scan-2.png", "scan-3.png", "scan-4.png"]
        assert [entry.path for entry in plan] == [tmp_path / name for name in plan.filenames]

    def test_row_column_names(self, quadrants, tmp_path):
        plan = plan_export(quadrants, "", tmp_path, mode=NamingMode.ROW_COLUMN)
        assert plan.filenames == [
            "image_row1_col1.png",
            "image_row1_col2.png",
            "image_row2_col1.png",
            "image_row2_col2.png",
        ]

    def test_custom_names_keep_duplicates(self, quadrants, tmp_path):
        names = ["a", "b.png", "a", "c"]
        plan = plan_export(quadrants, "x", tmp_path, mode=NamingMode.CUSTOM, names=names)

        assert plan.filenames == ["a.png", "b.png", "a.png", "c.png"]
        assert plan.duplicate_filenames() == ["a.png"]

    def test_custom_names_must_match_regions(self, quadrants, tmp_path):
        with pytest.raises(ValueError):
            plan_export(quadrants, "x", tmp_path, mode=NamingMode.CUSTOM, names=["only-one"])

    @pytest.mark.parametrize("name", ["../escaped", "a/b/c", "/tmp/abs", "sub\\file"])
    def test_names_with_folders_are_rejected(self, quadrants, tmp_path, name):
        names = ["ok", name, "ok2", "ok3"]
        with pytest.raises(ValueError, match="folder"):
            plan_export(quadrants, "x", tmp_path / "out", mode=NamingMode.CUSTOM, names=names)

    def test_base_name_with_folder_is_rejected(self, quadrants, tmp_path):
        with pytest.raises(ValueError):
            plan_export(quadrants, "../scan", tmp_path, mode=NamingMode.ROW_COLUMN)


class TestExportPreview:
    def test_default_names(self, quadrants):
        preview = ExportPreview(quadrants, "scan")
        assert preview.base_filename == "scan-1"
        assert [item.filename for item in preview.items] == ["scan-1", "scan-2", "scan-3", "scan-4"]
        assert preview.selected_count == 4

    def test_apply_base_filename(self, quadrants):
        preview = ExportPreview(quadrants)
        names = preview.apply_base_filename("Card-A")

        assert names == ["Card-A", "Card-B", "Card-C", "Card-D"]
        assert preview.items[3].filename == "Card-D"

    def test_selection_and_plan(self, quadrants, tmp_path):
        preview = ExportPreview(quadrants, "scan")
        preview.select_none()
        assert preview.selected_count == 0

        preview.select_all()
        preview.set_selected(1, False)
        preview.rename(2, "bottom-left")

        plan = preview.to_plan(tmp_path)
        assert plan.filenames == ["scan-1.png", "bottom-left.png", "scan-4.png"]
        assert [entry.region for entry in plan] == [quadrants[0], quadrants[2], quadrants[3]]


class TestPixelRect:
    def test_floor_origin_ceil_size(self):
        region = CropRegion(0, 0, NormalizedRect(0.255, 0.0, 0.5, 1.0))
        assert pixel_rect(region, 101, 10) == (25, 0, 51, 10)

    def test_clamped_to_image(self):
        region = CropRegion(0, 0, NormalizedRect(0.75, 0.75, 0.5, 0.5))
        assert pixel_rect(region, 100, 100) == (75, 75, 25, 25)

    def test_empty_rect_is_skipped(self, tmp_path, source_image):
        region = CropRegion(0, 0, NormalizedRect(1.0, 0.0, 0.1, 1.0))
        assert pixel_rect(region, 200, 100) is None
        assert crop_and_save(source_image, region, tmp_path / "empty.png") is False
        assert not (tmp_path / "empty.png").exists()


class TestExportRegions:
    def test_writes_row_column_files(self, quadrants, source_image, tmp_path):
        output_dir = tmp_path / "out"
        count = export_regions(source_image, quadrants, output_dir, "scan")

        assert count == 4
        assert sorted(p.name for p in output_dir.iterdir()) == [
            "scan_row1_col1.png",
            "scan_row1_col2.png",
            "scan_row2_col1.png",
            "scan_row2_col2.png",
        ]
        with Image.open(output_dir / "scan_row1_col2.png") as crop:
            assert crop.size == (100, 50)
            assert crop.convert("RGB").getpixel((0, 0)) == (255, 0, 0)

    def test_accepts_numpy_source(self, quadrants, source_image, tmp_path):
        assert export_regions(np.array(source_image), quadrants, tmp_path, "np") == 4

    def test_no_regions_writes_nothing(self, source_image, tmp_path):
        output_dir = tmp_path / "out"
        with pytest.raises(NoRegionsError, match="No regions to export."):
            export_regions(source_image, [], output_dir, "scan")
        assert not output_dir.exists()

    def test_aborts_on_first_failure(self, quadrants, source_image, tmp_path):
        # A directory in the way makes the second write fail
        (tmp_path / "scan_row1_col2.png").mkdir()

        with pytest.raises(SaveFailure) as exc_info:
            export_regions(source_image, quadrants, tmp_path, "scan")

        assert exc_info.value.filename == "scan_row1_col2.png"
        assert str(exc_info.value).startswith("Failed to save file: scan_row1_col2.png.")
        assert (tmp_path / "scan_row1_col1.png").is_file()
        assert not (tmp_path / "scan_row2_col1.png").exists()


class TestExportPlan:
    def test_skips_failed_items(self, quadrants, source_image, tmp_path):
        (tmp_path / "scan-2.png").mkdir()
        plan = plan_export(quadrants, "scan", tmp_path)

        assert export_plan(source_image, plan) == 3
        assert (tmp_path / "scan-4.png").is_file()

    def test_duplicate_names_overwrite(self, quadrants, source_image, tmp_path):
        plan = plan_export(quadrants, "x", tmp_path, mode=NamingMode.CUSTOM, names=["same"] * 4)

        assert export_plan(source_image, plan) == 4
        assert [p.name for p in tmp_path.iterdir()] == ["same.png"]

    def test_creates_output_dir(self, quadrants, source_image, tmp_path):
        plan = plan_export(quadrants[:1], "scan", tmp_path / "nested" / "dir")
        assert export_plan(source_image, plan) == 1
        assert Path(tmp_path / "nested" / "dir" / "scan-1.png").is_file()
