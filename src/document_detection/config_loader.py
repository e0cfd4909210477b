"""
Configuration loader with Pydantic validation for Document Detection module.

Loads detection thresholds from config.yaml. Every numeric constant used by
the preprocessing, contour, scoring, ROI and rectification stages lives here.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.document_detection.types import (
    ID1_ASPECT_RATIO,
    DeviceProfile,
    ProfileParameters,
)
from src.utils.io import load_yaml

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def _require_odd(value: int, name: str) -> int:
    if value % 2 == 0:
        raise ValueError(f"{name} must be odd, got {value}")
    return value


class ProfileConfig(BaseModel):
    """Per-device detection parameters.

    Attributes:
        blur_kernel_size: Gaussian blur kernel size (odd).
        canny_low: Lower Canny hysteresis threshold.
        canny_high: Upper Canny hysteresis threshold.
        min_contour_area: Smallest raw contour area kept (px^2).
        epsilon_factor: Douglas-Peucker epsilon as a fraction of perimeter.
    """

    blur_kernel_size: int = Field(default=5, gt=0)
    canny_low: float = Field(default=15.0, ge=0.0)
    canny_high: float = Field(default=50.0, gt=0.0)
    min_contour_area: float = Field(default=2000.0, ge=0.0)
    epsilon_factor: float = Field(default=0.045, gt=0.0, lt=1.0)

    @field_validator("blur_kernel_size")
    @classmethod
    def _odd_kernel(cls, v: int) -> int:
        return _require_odd(v, "blur_kernel_size")

    @model_validator(mode="after")
    def _canny_order(self) -> "ProfileConfig":
        if self.canny_low >= self.canny_high:
            raise ValueError(
                f"canny_low ({self.canny_low}) must be less than "
                f"canny_high ({self.canny_high})"
            )
        return self

    def to_parameters(self) -> ProfileParameters:
        return ProfileParameters(
            blur_kernel_size=self.blur_kernel_size,
            canny_low=self.canny_low,
            canny_high=self.canny_high,
            min_contour_area=self.min_contour_area,
            epsilon_factor=self.epsilon_factor,
        )


class MobileProfileConfig(ProfileConfig):
    """Mobile parameters: stronger blur and lower thresholds for noisy sensors."""

    blur_kernel_size: int = Field(default=7, gt=0)
    canny_low: float = Field(default=10.0, ge=0.0)
    canny_high: float = Field(default=40.0, gt=0.0)
    min_contour_area: float = Field(default=1500.0, ge=0.0)
    epsilon_factor: float = Field(default=0.05, gt=0.0, lt=1.0)


class ProfilesConfig(BaseModel):
    """Parameter sets for both device profiles.

    Each profile has its own defaults, so a partial override keeps the
    remaining values of that profile.
    """

    mobile: MobileProfileConfig = Field(default_factory=MobileProfileConfig)
    desktop: ProfileConfig = Field(default_factory=ProfileConfig)

    def for_profile(self, profile: DeviceProfile) -> ProfileParameters:
        if profile == DeviceProfile.MOBILE:
            return self.mobile.to_parameters()
        return self.desktop.to_parameters()


class PreprocessingConfig(BaseModel):
    """Mask-building parameters shared by both profiles.

    Attributes:
        contrast_alpha: Gain for the linear contrast rescale.
        contrast_beta: Bias for the linear contrast rescale.
        adaptive_block_size: Neighbourhood size for adaptive threshold (odd).
        adaptive_c: Constant subtracted from the local weighted mean.
        adaptive_invert: Mark pixels darker than their neighbourhood as 255 so
            threshold edges share the polarity of Canny edges.
        close_kernel_size: Rectangular kernel for morphological closing.
        dilate_kernel_size: Rectangular kernel for the final dilation.
    """

    contrast_alpha: float = Field(default=1.5, gt=0.0)
    contrast_beta: float = 30.0
    adaptive_block_size: int = Field(default=11, gt=1)
    adaptive_c: float = 2.0
    adaptive_invert: bool = True
    close_kernel_size: int = Field(default=5, gt=0)
    dilate_kernel_size: int = Field(default=3, gt=0)

    @field_validator("adaptive_block_size")
    @classmethod
    def _odd_block(cls, v: int) -> int:
        return _require_odd(v, "adaptive_block_size")


class ContourConfig(BaseModel):
    """Polygon vertex bounds after approximation."""

    min_vertices: int = Field(default=4, ge=3)
    max_vertices: int = Field(default=12, ge=4)

    @model_validator(mode="after")
    def _vertex_order(self) -> "ContourConfig":
        if self.min_vertices > self.max_vertices:
            raise ValueError("min_vertices must not exceed max_vertices")
        return self


class ShapeConfig(BaseModel):
    """Loose ID-1 shape gates applied to each candidate's bounding box."""

    aspect_ratio_min: float = Field(default=1.1, gt=0.0)
    aspect_ratio_max: float = Field(default=2.2, gt=0.0)
    area_ratio_min: float = Field(default=0.05, ge=0.0, le=1.0)
    area_ratio_max: float = Field(default=0.98, ge=0.0, le=1.0)
    min_width_px: int = Field(default=100, ge=0)
    min_height_px: int = Field(default=60, ge=0)

    @model_validator(mode="after")
    def _range_order(self) -> "ShapeConfig":
        if self.aspect_ratio_min >= self.aspect_ratio_max:
            raise ValueError("aspect_ratio_min must be less than aspect_ratio_max")
        if self.area_ratio_min >= self.area_ratio_max:
            raise ValueError("area_ratio_min must be less than area_ratio_max")
        return self


class ScoringConfig(BaseModel):
    """Composite score weights.

    score = aspect_weight * aspect_score + area_weight * area_score
    """

    target_aspect_ratio: float = Field(default=1.586, gt=0.0)
    aspect_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    area_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    area_saturation: float = Field(default=0.7, gt=0.0, le=1.0)

    @model_validator(mode="after")
    def _weights_sum(self) -> "ScoringConfig":
        if abs(self.aspect_weight + self.area_weight - 1.0) > 1e-6:
            raise ValueError("aspect_weight and area_weight must sum to 1.0")
        return self


class ROIConfig(BaseModel):
    """Centered guide-frame window sizing."""

    mobile_width_ratio: float = Field(default=0.70, gt=0.0, le=1.0)
    small_width_ratio: float = Field(default=0.65, gt=0.0, le=1.0)
    medium_width_ratio: float = Field(default=0.60, gt=0.0, le=1.0)
    mobile_max_width: int = Field(default=320, gt=0)
    mobile_max_height: int = Field(default=200, gt=0)
    max_width: int = Field(default=400, gt=0)
    max_height: int = Field(default=250, gt=0)
    aspect_ratio: float = Field(default=ID1_ASPECT_RATIO, gt=0.0)


class DeviceConfig(BaseModel):
    """Environment signals used to pick a DeviceProfile."""

    mobile_user_agent_pattern: str = r"iPhone|iPad|iPod|Android"
    mobile_max_viewport_width: int = Field(default=768, gt=0)
    small_min_viewport_width: int = Field(default=640, gt=0)


class RectificationConfig(BaseModel):
    """Canonical output geometry for perspective correction."""

    output_width: int = Field(default=800, gt=0)
    output_height: int = Field(default=500, gt=0)
    interpolation: Literal["nearest", "linear", "cubic", "area", "lanczos"] = "linear"
    corner_order: Literal["angle", "quadrant"] = "angle"


class DetectionConfig(BaseModel):
    """Complete document detection configuration."""

    profiles: ProfilesConfig = Field(default_factory=ProfilesConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    contours: ContourConfig = Field(default_factory=ContourConfig)
    shape: ShapeConfig = Field(default_factory=ShapeConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    roi: ROIConfig = Field(default_factory=ROIConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    rectification: RectificationConfig = Field(default_factory=RectificationConfig)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> DetectionConfig:
    """
    Load and validate detection configuration from a YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated DetectionConfig object. Sections missing from the file
        take their model defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If YAML parsing fails.
        pydantic.ValidationError: If configuration validation fails.

    Example:
        >>> config = load_config()
        >>> print(config.profiles.mobile.blur_kernel_size)
        7
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading detection config from {config_path}")

    raw_config = load_yaml(config_path) or {}

    config = DetectionConfig(**raw_config)
    logger.info("Successfully loaded detection configuration")
    return config


@lru_cache(maxsize=1)
def _load_bundled_config() -> DetectionConfig:
    return load_config(DEFAULT_CONFIG_PATH)


def get_default_config() -> DetectionConfig:
    """Get default configuration from the bundled config.yaml file.

    The file is parsed and validated once per process; every call returns
    an independent copy. Falls back to hardcoded model defaults if the file
    is missing.
    """
    if DEFAULT_CONFIG_PATH.exists():
        return _load_bundled_config().model_copy(deep=True)
    logger.warning(
        f"Bundled config not found at {DEFAULT_CONFIG_PATH}, using model defaults"
    )
    return DetectionConfig()
