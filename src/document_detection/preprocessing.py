"""
Frame preprocessing: raw frame to binary document-edge mask.

A single edge detector is brittle when the card colour is close to the
background or when fingers occlude the border. The mask therefore combines
an adaptive threshold with Canny edges, then closes and dilates the result
so the card outline stays one connected contour.

Pipeline (order matters):
1. Grayscale conversion
2. Linear contrast/brightness rescale (gain 1.5, bias 30)
3. Histogram equalization
4. Gaussian blur (7x7 mobile, 5x5 desktop)
5. Adaptive threshold (block 11, C 2) OR Canny (10/40 mobile, 15/50 desktop)
6. Morphological close (5x5 rect) then dilate (3x3 rect)
"""

import logging
from typing import Optional

import cv2
import numpy as np

from src.document_detection.config_loader import PreprocessingConfig
from src.document_detection.types import ProfileParameters

logger = logging.getLogger(__name__)

_GRAY_CONVERSIONS = {
    ("rgb", 3): cv2.COLOR_RGB2GRAY,
    ("rgb", 4): cv2.COLOR_RGBA2GRAY,
    ("bgr", 3): cv2.COLOR_BGR2GRAY,
    ("bgr", 4): cv2.COLOR_BGRA2GRAY,
}


def to_grayscale(image: np.ndarray, color_order: str = "rgb") -> np.ndarray:
    """
    Convert a 1, 3 or 4 channel image to a single-channel intensity image.

    Args:
        image: Input image with shape (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).
        color_order: "rgb" for browser-style frames (RGB/RGBA),
                     "bgr" for OpenCV-style frames (BGR/BGRA).

    Returns:
        2D grayscale image. Single-channel input is returned as a 2D view.

    Raises:
        ValueError: If the shape or colour order is unsupported.
    """
    if image.ndim == 2:
        return image

    if image.ndim != 3:
        raise ValueError(f"Expected 2D or 3D image, got shape {image.shape}")

    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]

    conversion = _GRAY_CONVERSIONS.get((color_order.lower(), channels))
    if conversion is None:
        raise ValueError(
            f"Unsupported colour layout: order={color_order!r}, channels={channels}"
        )

    return cv2.cvtColor(image, conversion)


def enhance_contrast(
    gray: np.ndarray, config: Optional[PreprocessingConfig] = None
) -> np.ndarray:
    """Rescale intensity (alpha * I + beta, saturated) then equalize the histogram."""
    config = config or PreprocessingConfig()

    enhanced = cv2.convertScaleAbs(
        gray, alpha=config.contrast_alpha, beta=config.contrast_beta
    )
    return cv2.equalizeHist(enhanced)


def build_edge_mask(
    image: np.ndarray,
    params: ProfileParameters,
    config: Optional[PreprocessingConfig] = None,
    color_order: str = "rgb",
) -> np.ndarray:
    """
    Build the binary mask highlighting document edges.

    Args:
        image: Frame (gray, RGB/RGBA or BGR/BGRA), uint8.
        params: Device profile parameters (blur kernel, Canny thresholds).
        config: Shared preprocessing constants.
        color_order: Channel order of colour frames.

    Returns:
        uint8 mask of the same height and width, values in {0, 255}.

    Example:
        >>> mask = build_edge_mask(frame, config.profiles.for_profile(DeviceProfile.MOBILE))
        >>> mask.shape == frame.shape[:2]
        True
    """
    config = config or PreprocessingConfig()

    gray = to_grayscale(image, color_order)
    equalized = enhance_contrast(gray, config)

    k = params.blur_kernel_size
    blurred = cv2.GaussianBlur(equalized, (k, k), 0)

    # Two edge representations over the same blurred input
    adaptive = cv2.adaptiveThreshold(
        blurred,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY_INV if config.adaptive_invert else cv2.THRESH_BINARY,
        config.adaptive_block_size,
        config.adaptive_c,
    )
    edges = cv2.Canny(blurred, params.canny_low, params.canny_high)
    combined = cv2.bitwise_or(edges, adaptive)

    close_kernel = cv2.getStructuringElement(
        cv2.MORPH_RECT, (config.close_kernel_size, config.close_kernel_size)
    )
    closed = cv2.morphologyEx(combined, cv2.MORPH_CLOSE, close_kernel)

    dilate_kernel = cv2.getStructuringElement(
        cv2.MORPH_RECT, (config.dilate_kernel_size, config.dilate_kernel_size)
    )
    mask = cv2.dilate(closed, dilate_kernel)

    logger.debug(
        f"Edge mask built: {mask.shape[1]}x{mask.shape[0]}, "
        f"blur={k}, canny={params.canny_low:.0f}/{params.canny_high:.0f}, "
        f"coverage={np.count_nonzero(mask) / mask.size:.1%}"
    )

    return mask
