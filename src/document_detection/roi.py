"""
Guide-frame region of interest.

Computes the centered search window matching the on-screen card guide,
crops frames to it and maps ROI-local points back into full-frame space.
Dropping the offset translation would report corners shifted by the window
origin, so every caller that crops must translate.
"""

import logging
from typing import Optional, Union

import numpy as np

from src.document_detection.config_loader import ROIConfig
from src.document_detection.device_profile import default_screen_class
from src.document_detection.types import ROI, DeviceProfile, ScreenClass

logger = logging.getLogger(__name__)


def _width_ratio(screen: ScreenClass, config: ROIConfig) -> float:
    if screen == ScreenClass.SMALL:
        return config.small_width_ratio
    if screen == ScreenClass.MEDIUM:
        return config.medium_width_ratio
    return config.mobile_width_ratio


def calculate_guide_frame_roi(
    frame_width: int,
    frame_height: int,
    profile: DeviceProfile,
    screen: Optional[ScreenClass] = None,
    config: Optional[ROIConfig] = None,
) -> Optional[ROI]:
    """
    Calculate the centered ID-1 shaped search window.

    Sizing:
    1. Width = frame width * (70% mobile, 65% small, 60% medium+ screens)
    2. Height = width / 1.586
    3. Cap at 320x200 (mobile) or 400x250 (desktop), keeping the ratio
    4. Clamp to the frame, center, floor to whole pixels

    Args:
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
        profile: Device profile (selects the absolute caps).
        screen: Screen class (selects the width percentage). Defaults to the
                profile's natural class.
        config: Window sizing constants.

    Returns:
        ROI fully inside the frame, or None for zero/invalid dimensions.

    Example:
        >>> calculate_guide_frame_roi(1920, 1080, DeviceProfile.DESKTOP)
        ROI(x=761, y=415, width=396, height=250)
    """
    config = config or ROIConfig()
    screen = screen or default_screen_class(profile)

    if not frame_width or not frame_height or frame_width <= 0 or frame_height <= 0:
        logger.warning(f"No ROI for invalid frame size {frame_width}x{frame_height}")
        return None

    ratio = config.aspect_ratio
    roi_width = frame_width * _width_ratio(screen, config)
    roi_height = roi_width / ratio

    if profile == DeviceProfile.MOBILE:
        max_width, max_height = config.mobile_max_width, config.mobile_max_height
    else:
        max_width, max_height = config.max_width, config.max_height

    if roi_width > max_width:
        roi_width = max_width
        roi_height = roi_width / ratio
    if roi_height > max_height:
        roi_height = max_height
        roi_width = roi_height * ratio

    roi_width = min(roi_width, frame_width)
    roi_height = min(roi_height, frame_height)

    x = int(max(0.0, (frame_width - roi_width) / 2))
    y = int(max(0.0, (frame_height - roi_height) / 2))
    width = int(min(roi_width, frame_width - x))
    height = int(min(roi_height, frame_height - y))

    if width <= 0 or height <= 0:
        logger.warning(f"Degenerate ROI {width}x{height} for frame {frame_width}x{frame_height}")
        return None

    roi = ROI(x=x, y=y, width=width, height=height)
    logger.debug(f"Guide frame ROI for {frame_width}x{frame_height}: {roi}")

    return roi


def crop_to_roi(frame: np.ndarray, roi: ROI) -> np.ndarray:
    """Return a view of the frame restricted to the ROI (no copy)."""
    return frame[roi.y : roi.y + roi.height, roi.x : roi.x + roi.width]


def translate_points(
    points: Union[np.ndarray, list], roi: Optional[ROI]
) -> np.ndarray:
    """
    Shift ROI-local points into full-frame coordinates.

    Args:
        points: Points with shape (N, 2) in ROI-local coordinates.
        roi: Window the points were detected in (None means no shift).

    Returns:
        New array of the same dtype with the ROI origin added.
    """
    pts = np.array(points)
    if roi is None:
        return pts
    return pts + roi.offset.astype(pts.dtype)
