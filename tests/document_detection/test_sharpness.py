"""
Unit tests for Laplacian variance sharpness estimation.
"""

import cv2
import numpy as np
import pytest

from src.document_detection.sharpness import calculate_sharpness, estimate_sharpness


class TestCalculateSharpness:
    """Tests for calculate_sharpness."""

    def test_flat_image_is_zero(self):
        flat = np.full((100, 100), 128, dtype=np.uint8)
        assert calculate_sharpness(flat) == pytest.approx(0.0)

    def test_textured_image_scores_higher(self, checkerboard):
        flat = np.full_like(checkerboard, 128)
        assert calculate_sharpness(checkerboard) > calculate_sharpness(flat)

    def test_blur_lowers_sharpness(self, checkerboard):
        blurred = cv2.GaussianBlur(checkerboard, (9, 9), 3)
        assert calculate_sharpness(blurred) < calculate_sharpness(checkerboard)

    @pytest.mark.parametrize("conversion", [cv2.COLOR_GRAY2RGB, cv2.COLOR_GRAY2RGBA])
    def test_colour_input_matches_grayscale(self, checkerboard, conversion):
        colour = cv2.cvtColor(checkerboard, conversion)
        assert calculate_sharpness(colour) == pytest.approx(
            calculate_sharpness(checkerboard)
        )

    def test_returns_python_float(self, checkerboard):
        assert isinstance(calculate_sharpness(checkerboard), float)

    def test_none_raises(self):
        with pytest.raises(ValueError, match="Invalid image"):
            calculate_sharpness(None)

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="Invalid image"):
            calculate_sharpness(np.zeros((0, 0), dtype=np.uint8))


class TestEstimateSharpness:
    """Tests for the fail-open wrapper."""

    def test_none_gives_zero(self):
        assert estimate_sharpness(None) == 0.0

    def test_unsupported_layout_gives_zero(self):
        assert estimate_sharpness(np.zeros((10, 10, 2), dtype=np.uint8)) == 0.0

    def test_valid_image_passes_through(self, checkerboard):
        assert estimate_sharpness(checkerboard) == pytest.approx(
            calculate_sharpness(checkerboard)
        )
