"""
Unit tests for config_loader module.
"""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from src.document_detection.config_loader import (
    DetectionConfig,
    ProfileConfig,
    ScoringConfig,
    ShapeConfig,
    get_default_config,
    load_config,
)
from src.document_detection.types import DeviceProfile


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_default_config(self):
        """Test loading the bundled configuration file."""
        config = load_config()

        assert isinstance(config, DetectionConfig)
        assert config.profiles.mobile.blur_kernel_size == 7
        assert config.profiles.mobile.canny_low == 10
        assert config.profiles.mobile.canny_high == 40
        assert config.profiles.mobile.min_contour_area == 1500
        assert config.profiles.mobile.epsilon_factor == pytest.approx(0.05)
        assert config.profiles.desktop.blur_kernel_size == 5
        assert config.profiles.desktop.canny_low == 15
        assert config.profiles.desktop.canny_high == 50
        assert config.profiles.desktop.min_contour_area == 2000
        assert config.profiles.desktop.epsilon_factor == pytest.approx(0.045)
        assert config.preprocessing.adaptive_block_size == 11
        assert config.preprocessing.adaptive_invert is True
        assert config.shape.aspect_ratio_min == pytest.approx(1.1)
        assert config.shape.aspect_ratio_max == pytest.approx(2.2)
        assert config.scoring.area_saturation == pytest.approx(0.7)
        assert config.roi.aspect_ratio == pytest.approx(85.6 / 53.98, abs=1e-5)
        assert config.rectification.output_width == 800
        assert config.rectification.output_height == 500
        assert config.rectification.corner_order == "angle"

    def test_load_custom_config(self):
        """Partial files override only the given keys."""
        custom_config = {
            "profiles": {"desktop": {"blur_kernel_size": 3, "canny_low": 20, "canny_high": 60}},
            "rectification": {"output_width": 856, "output_height": 540},
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(custom_config, f)
            temp_path = Path(f.name)

        try:
            config = load_config(temp_path)

            assert config.profiles.desktop.blur_kernel_size == 3
            assert config.profiles.desktop.canny_high == 60
            assert config.profiles.mobile.blur_kernel_size == 7
            assert config.rectification.output_width == 856
            assert config.shape.min_width_px == 100
        finally:
            temp_path.unlink()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == DetectionConfig()

    def test_partial_mobile_override_keeps_mobile_defaults(self, tmp_path):
        path = tmp_path / "mobile.yaml"
        path.write_text(yaml.dump({"profiles": {"mobile": {"canny_low": 12}}}))

        mobile = load_config(path).profiles.mobile

        assert mobile.canny_low == 12
        assert mobile.canny_high == 40
        assert mobile.blur_kernel_size == 7
        assert mobile.min_contour_area == 1500
        assert mobile.epsilon_factor == pytest.approx(0.05)

    def test_partial_desktop_override_keeps_desktop_defaults(self):
        config = DetectionConfig(profiles={"desktop": {"blur_kernel_size": 3}})

        assert config.profiles.desktop.canny_high == 50
        assert config.profiles.mobile.blur_kernel_size == 7

    def test_missing_file_raises_error(self):
        """Test that missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(Path("nonexistent_config.yaml"))

    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"profiles": {"mobile": {"blur_kernel_size": 6}}}))

        with pytest.raises(ValidationError):
            load_config(path)

    def test_get_default_config(self):
        config = get_default_config()
        assert config.profiles.for_profile(DeviceProfile.MOBILE).blur_kernel_size == 7


class TestConfigValidation:
    """Tests for model-level validation."""

    def test_even_kernel_rejected(self):
        with pytest.raises(ValidationError, match="must be odd"):
            ProfileConfig(blur_kernel_size=4)

    def test_canny_order(self):
        with pytest.raises(ValidationError, match="canny_low"):
            ProfileConfig(canny_low=60, canny_high=50)

    def test_aspect_range_order(self):
        with pytest.raises(ValidationError):
            ShapeConfig(aspect_ratio_min=2.5, aspect_ratio_max=2.2)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            ScoringConfig(aspect_weight=0.5, area_weight=0.6)

    def test_unknown_interpolation_rejected(self):
        with pytest.raises(ValidationError):
            DetectionConfig(rectification={"interpolation": "bicubic-ish"})

    def test_mobile_kernel_still_validated(self):
        with pytest.raises(ValidationError, match="must be odd"):
            DetectionConfig(profiles={"mobile": {"blur_kernel_size": 8}})

    def test_profile_parameters(self):
        params = ProfileConfig().to_parameters()
        assert params.blur_kernel_size == 5
        assert params.epsilon_factor == pytest.approx(0.045)
