"""
Unit tests for guide-frame ROI sizing and coordinate translation.
"""

import numpy as np
import pytest

from src.document_detection.config_loader import ROIConfig
from src.document_detection.roi import (
    calculate_guide_frame_roi,
    crop_to_roi,
    translate_points,
)
from src.document_detection.types import ID1_ASPECT_RATIO, ROI, DeviceProfile, ScreenClass


class TestCalculateGuideFrameROI:
    """Tests for calculate_guide_frame_roi."""

    def test_desktop_full_hd(self):
        roi = calculate_guide_frame_roi(1920, 1080, DeviceProfile.DESKTOP)

        assert roi == ROI(x=761, y=415, width=396, height=250)
        assert roi.width <= 400 and roi.height <= 250
        assert roi.aspect_ratio == pytest.approx(1.586, abs=0.01)
        assert roi.fits_within(1920, 1080)

    def test_mobile_caps(self):
        roi = calculate_guide_frame_roi(640, 480, DeviceProfile.MOBILE)

        assert roi.width <= 320 and roi.height <= 200
        assert roi.aspect_ratio == pytest.approx(ID1_ASPECT_RATIO, abs=0.01)
        assert roi.fits_within(640, 480)

    def test_window_is_centred(self):
        roi = calculate_guide_frame_roi(1280, 720, DeviceProfile.DESKTOP)

        left = roi.x
        right = 1280 - (roi.x + roi.width)
        top = roi.y
        bottom = 720 - (roi.y + roi.height)
        # Both offset and size are floored
        assert abs(left - right) <= 2
        assert abs(top - bottom) <= 1

    @pytest.mark.parametrize(
        "screen, expected_width",
        [
            (ScreenClass.MOBILE, 280),
            (ScreenClass.SMALL, 260),
            (ScreenClass.MEDIUM, 240),
        ],
    )
    def test_width_ratio_by_screen_class(self, screen, expected_width):
        # Small frame: percentage-driven, no cap reached
        roi = calculate_guide_frame_roi(400, 300, DeviceProfile.DESKTOP, screen)
        assert abs(roi.width - expected_width) <= 1

    def test_short_frame_clamped(self):
        roi = calculate_guide_frame_roi(1000, 100, DeviceProfile.DESKTOP)

        assert roi.height == 100
        assert roi.fits_within(1000, 100)

    @pytest.mark.parametrize("size", [(0, 480), (640, 0), (-1, 480), (None, 480)])
    def test_invalid_frame_size(self, size):
        assert calculate_guide_frame_roi(*size, DeviceProfile.MOBILE) is None

    def test_custom_caps(self):
        config = ROIConfig(max_width=200, max_height=126)
        roi = calculate_guide_frame_roi(1920, 1080, DeviceProfile.DESKTOP, config=config)
        assert roi.width <= 200 and roi.height <= 126

    @pytest.mark.parametrize("profile", list(DeviceProfile))
    @pytest.mark.parametrize("size", [(320, 240), (640, 480), (1280, 720), (3840, 2160)])
    def test_always_inside_frame(self, profile, size):
        roi = calculate_guide_frame_roi(*size, profile)
        assert roi.fits_within(*size)


class TestCropAndTranslate:
    """Tests for ROI cropping and offset translation."""

    def test_crop_is_view(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        roi = ROI(x=161, y=140, width=317, height=200)

        region = crop_to_roi(frame, roi)

        assert region.shape == (200, 317, 3)
        assert np.shares_memory(region, frame)

    def test_translate_points(self):
        roi = ROI(x=161, y=140, width=317, height=200)
        local = np.array([[0, 0], [316, 0], [316, 199], [0, 199]], dtype=np.int32)

        translated = translate_points(local, roi)

        np.testing.assert_array_equal(
            translated, [[161, 140], [477, 140], [477, 339], [161, 339]]
        )
        assert translated.dtype == np.int32
        # Input untouched
        assert local[0, 0] == 0

    def test_translate_float_points(self):
        roi = ROI(x=10, y=20, width=100, height=60)
        translated = translate_points(np.array([[1.5, 2.5]], dtype=np.float32), roi)
        np.testing.assert_allclose(translated, [[11.5, 22.5]])

    def test_no_roi_means_no_shift(self):
        points = np.array([[5, 6]])
        np.testing.assert_array_equal(translate_points(points, None), points)
