"""
Document Detection: ID-1 Card Localization & Rectification

Locates a card-shaped identity document in a live camera frame, scores it
against ID-1 proportions, measures focus quality and warps it into a
canonical top-down image for downstream OCR.

Pipeline stages:
1. Sharpness estimation (Laplacian variance)
2. Edge mask preprocessing (adaptive threshold OR Canny, close, dilate)
3. Candidate contour extraction (outer contours, polygon approximation)
4. Shape validation and scoring (aspect ratio, area ratio, size)
5. Corner ordering and perspective rectification
"""

from src.document_detection.backend import BackendCapabilities, load_backend
from src.document_detection.config_loader import (
    DetectionConfig,
    get_default_config,
    load_config,
)
from src.document_detection.device_profile import select_device_profile
from src.document_detection.processor import DocumentDetector, detect_document
from src.document_detection.rectification import (
    order_corners,
    rectify,
    rectify_document,
)
from src.document_detection.roi import calculate_guide_frame_roi, translate_points
from src.document_detection.sharpness import calculate_sharpness, estimate_sharpness
from src.document_detection.types import (
    ROI,
    DetectionResult,
    DeviceProfile,
    FailureReason,
    RectificationResult,
    ScreenClass,
)

__all__ = [
    # Main API
    "DocumentDetector",
    "detect_document",
    "rectify",
    "rectify_document",
    # Stages
    "calculate_sharpness",
    "estimate_sharpness",
    "order_corners",
    "calculate_guide_frame_roi",
    "translate_points",
    "select_device_profile",
    "load_backend",
    # Config
    "DetectionConfig",
    "load_config",
    "get_default_config",
    # Types
    "BackendCapabilities",
    "DetectionResult",
    "RectificationResult",
    "DeviceProfile",
    "ScreenClass",
    "FailureReason",
    "ROI",
]
