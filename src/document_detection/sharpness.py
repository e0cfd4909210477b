"""
Focus quality estimation using Variance of Laplacian.

The Laplacian operator computes the 2nd derivative of the image intensity.
Sharp frames have strong edge responses and therefore high variance;
blurred frames have weak responses and low variance. The score is unit-less;
acceptability is judged by the caller against its own threshold.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from src.document_detection.preprocessing import to_grayscale

logger = logging.getLogger(__name__)


def calculate_sharpness(image: np.ndarray, color_order: str = "rgb") -> float:
    """
    Calculate sharpness as the variance of the Laplacian response.

    Args:
        image: Grayscale, 3-channel or 4-channel uint8 image.
        color_order: Channel order of colour input ("rgb", "bgr").

    Returns:
        Laplacian variance as a float. Higher values indicate sharper edges.

    Raises:
        ValueError: If image is invalid or empty.

    Example:
        >>> frame = np.zeros((100, 100), dtype=np.uint8)
        >>> calculate_sharpness(frame)
        0.0
    """
    if image is None or image.size == 0:
        raise ValueError("Invalid image: image is None or empty")

    gray = to_grayscale(image, color_order)

    # CV_64F keeps negative responses so the variance is not clipped
    laplacian = cv2.Laplacian(gray, cv2.CV_64F)
    sharpness = laplacian.var()

    logger.debug(f"Sharpness (Laplacian variance): {sharpness:.2f}")

    return float(sharpness)


def estimate_sharpness(
    image: Optional[np.ndarray], color_order: str = "rgb"
) -> float:
    """
    Fail-open variant of calculate_sharpness.

    Returns 0.0 instead of raising for missing, empty or unsupported input.
    """
    try:
        return calculate_sharpness(image, color_order)
    except (ValueError, cv2.error) as e:
        logger.warning(f"Sharpness estimation failed, reporting 0.0: {e}")
        return 0.0
