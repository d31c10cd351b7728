import numpy as np
import pytest

from gridslicer.detection import (
    BorderDetector,
    DetectionConfig,
    DetectionResult,
    detect_borders,
    detect_grid_borders,
    find_strongest_peaks,
)
from gridslicer.detection.edges import column_scores, gradient_magnitude, row_scores, to_grayscale
from gridslicer.detection.peaks import local_maxima

from .conftest import make_grid_image


class TestPeaks:
    def test_local_maxima_are_strict_and_skip_endpoints(self):
        assert local_maxima([5, 1, 3, 1, 2, 2, 1, 4]) == [2]
        assert local_maxima([1, 2]) == []

    def test_strongest_peaks_sorted_by_position(self):
        signal = [0, 3, 0, 9, 0, 5, 0]
        assert find_strongest_peaks(signal, min_distance=1, max_peaks=2) == [3, 5]

    def test_min_distance_rejects_weaker_neighbour(self):
        signal = [0, 9, 0, 8, 0, 0, 0, 7, 0]
        assert find_strongest_peaks(signal, min_distance=3, max_peaks=5) == [1, 7]

    def test_zero_max_peaks(self):
        assert find_strongest_peaks([0, 1, 0], min_distance=1, max_peaks=0) == []

    def test_ties_prefer_earlier_position(self):
        signal = [0, 5, 0, 5, 0]
        assert find_strongest_peaks(signal, min_distance=3, max_peaks=2) == [1]

    def test_spacing_property_on_random_signal(self):
        rng = np.random.default_rng(7)
        signal = rng.random(500)
        min_distance = 12

        accepted = find_strongest_peaks(signal, min_distance, max_peaks=1000)
        assert accepted == sorted(accepted)
        for a, b in zip(accepted[:-1], accepted[1:]):
            assert b - a >= min_distance

        # Every rejected candidate sits near an accepted peak at least as strong
        for index in set(local_maxima(signal)) - set(accepted):
            assert any(
                abs(index - peak) < min_distance and signal[peak] >= signal[index]
                for peak in accepted
            )


class TestEdges:
    def test_grayscale_from_rgba_and_gray(self):
        rgba = np.zeros((4, 5, 4), dtype=np.uint8)
        assert to_grayscale(rgba).shape == (4, 5)

        gray = np.full((3, 3), 7, dtype=np.uint8)
        assert (to_grayscale(gray) == 7).all()

    def test_grayscale_rejects_bad_input(self):
        with pytest.raises(ValueError):
            to_grayscale(np.zeros((2, 2, 2), dtype=np.uint8))
        with pytest.raises(ValueError):
            to_grayscale(42)

    def test_gradient_leaves_border_zero(self):
        gray = np.zeros((5, 5), dtype=np.uint8)
        gray[:, 2:] = 255
        edges = gradient_magnitude(gray)

        assert edges.dtype == np.float32
        assert edges[0].sum() == 0 and edges[-1].sum() == 0
        assert edges[:, 0].sum() == 0 and edges[:, -1].sum() == 0
        assert edges[2, 1] == pytest.approx(255.0)
        assert edges[2, 2] == pytest.approx(255.0)
        assert edges[2, 3] == 0

    def test_profiles_are_means(self):
        edges = np.array([[0, 2], [4, 6]], dtype=np.float32)
        assert column_scores(edges).tolist() == [2.0, 4.0]
        assert row_scores(edges).tolist() == [1.0, 5.0]


class TestBorderDetector:
    def test_two_vertical_lines(self):
        image = make_grid_image(width=400, height=300, columns=(100, 300))
        result = BorderDetector().detect(image)

        assert result.vertical == pytest.approx([0.25, 0.75], abs=0.01)
        assert result.horizontal == []
        assert (result.width, result.height) == (400, 300)

    def test_grid_lines_on_both_axes(self):
        image = make_grid_image(width=400, height=400, columns=(200,), rows=(100, 300))
        result = detect_borders(np.array(image))

        assert result.vertical == pytest.approx([0.5], abs=0.01)
        assert result.horizontal == pytest.approx([0.25, 0.75], abs=0.01)
        assert result.total_lines == 3
        assert result.status_message == "Detected 1 vertical and 2 horizontal lines"

    def test_lines_near_the_border_are_discarded(self):
        image = make_grid_image(width=400, height=300, columns=(6, 200))
        result = BorderDetector().detect(image)
        assert result.vertical == pytest.approx([0.5], abs=0.01)

    def test_max_lines_limits_result(self):
        image = make_grid_image(width=500, height=200, columns=(100, 200, 300, 400))
        result = detect_borders(image, max_lines=2, min_spacing=0.05)
        assert len(result.vertical) == 2

    def test_grid_config_from_expected_size(self):
        config = DetectionConfig.for_grid(columns=4, rows=3)
        assert config.max_lines == 3
        assert config.min_spacing == pytest.approx(0.16)

        image = make_grid_image(width=400, height=400, columns=(100, 200, 300))
        result = detect_grid_borders(image, columns=4, rows=4)
        assert result.vertical == pytest.approx([0.25, 0.5, 0.75], abs=0.01)

    def test_blank_image_reports_nothing(self):
        result = BorderDetector().detect(make_grid_image())
        assert result.total_lines == 0
        assert result.status_message == "No borders detected. Try adding lines manually."

    def test_unreadable_image_gives_empty_result(self, tmp_path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")

        result = BorderDetector().detect(broken)
        assert result == DetectionResult()
