"""
Main processor for the Document Detection module.

Orchestrates one complete attempt per frame:
1. Frame validation
2. Optional guide-frame ROI crop
3. Sharpness estimation (independent of detection)
4. Edge mask preprocessing
5. Contour candidate extraction
6. Shape validation and scoring
7. Corner reduction and ordering
8. ROI offset translation back to full-frame coordinates

The processor is fail-open: every failure becomes a "not detected" result
with the cause kept in FailureReason. It holds no per-frame state, so one
instance can serve a whole capture session.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from src.document_detection.backend import BackendCapabilities, load_backend
from src.document_detection.config_loader import (
    DetectionConfig,
    get_default_config,
    load_config,
)
from src.document_detection.contour_extractor import extract_candidates
from src.document_detection.device_profile import (
    default_screen_class,
    select_device_profile,
)
from src.document_detection.preprocessing import build_edge_mask
from src.document_detection.rectification import (
    order_corners,
    quad_from_polygon,
    rectify,
)
from src.document_detection.roi import (
    calculate_guide_frame_roi,
    crop_to_roi,
    translate_points,
)
from src.document_detection.shape_scorer import select_best_candidate
from src.document_detection.sharpness import estimate_sharpness
from src.document_detection.types import (
    ROI,
    DetectionResult,
    DeviceProfile,
    FailureReason,
    RectificationResult,
    ScreenClass,
)

logger = logging.getLogger(__name__)


def validate_frame(frame: Optional[np.ndarray]) -> Optional[str]:
    """
    Check that a frame is a usable pixel buffer.

    Returns:
        None if valid, otherwise a description of the problem.
    """
    if frame is None:
        return "frame is None"
    if not isinstance(frame, np.ndarray):
        return f"expected numpy.ndarray, got {type(frame).__name__}"
    if frame.ndim not in (2, 3):
        return f"expected 2D or 3D frame, got shape {frame.shape}"
    if frame.shape[0] <= 0 or frame.shape[1] <= 0:
        return f"zero frame dimensions {frame.shape[1]}x{frame.shape[0]}"
    if frame.ndim == 3 and frame.shape[2] not in (1, 3, 4):
        return f"expected 1, 3 or 4 channels, got {frame.shape[2]}"
    if frame.dtype != np.uint8:
        return f"expected uint8 frame, got {frame.dtype}"
    return None


class DocumentDetector:
    """
    Per-frame ID-1 card detector.

    The device profile, configuration and backend handle are fixed at
    construction. Each analyze() call allocates its own working buffers.

    Example:
        >>> detector = DocumentDetector(profile=DeviceProfile.MOBILE)
        >>> result = detector.analyze(frame)
        >>> if result.detected:
        ...     card = detector.rectify(frame, result.points)
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        config_path: Optional[Path] = None,
        profile: Optional[DeviceProfile] = None,
        screen: Optional[ScreenClass] = None,
        user_agent: Optional[str] = None,
        viewport_width: Optional[int] = None,
        color_order: str = "rgb",
        backend: Optional[BackendCapabilities] = None,
    ):
        """
        Initialize the detector.

        Args:
            config: Pre-loaded configuration. If None, loads from file.
            config_path: Path to config file. If None, uses the bundled one.
            profile: Explicit device profile. If None, selected from
                     user_agent / viewport_width.
            screen: Explicit screen class for ROI sizing.
            user_agent: Browser user agent used for profile selection.
            viewport_width: Viewport width used for profile selection.
            color_order: Channel order of colour frames ("rgb" or "bgr").
            backend: Backend capability handle. If None, initialised once.
        """
        if config is not None:
            self.config = config
        elif config_path is not None:
            self.config = load_config(config_path)
        else:
            self.config = get_default_config()

        if profile is None:
            profile, detected_screen = select_device_profile(
                user_agent, viewport_width, self.config.device
            )
            screen = screen or detected_screen

        self.profile = profile
        self.screen = screen or default_screen_class(profile)
        self.params = self.config.profiles.for_profile(profile)
        self.color_order = color_order
        self.backend = backend if backend is not None else load_backend()

        logger.info(
            f"DocumentDetector ready: profile={self.profile.value}, "
            f"screen={self.screen.value}, backend_available={self.backend.available}"
        )

    def compute_roi(self, frame_width: int, frame_height: int) -> Optional[ROI]:
        """Guide-frame window for this detector's profile and screen class."""
        return calculate_guide_frame_roi(
            frame_width, frame_height, self.profile, self.screen, self.config.roi
        )

    def analyze(self, frame: Optional[np.ndarray], use_roi: bool = False) -> DetectionResult:
        """
        Run one complete detection attempt on a frame.

        Args:
            frame: Pixel buffer (gray, RGB/RGBA or BGR/BGRA), uint8.
            use_roi: Restrict the search to the centered guide-frame window.

        Returns:
            DetectionResult. Never raises; failures are reported through
            detected=False and failure_reason.
        """
        if not self.backend.available:
            logger.warning("Detection skipped: image-processing backend unavailable")
            return DetectionResult.negative(FailureReason.LIBRARY_UNAVAILABLE)

        problem = validate_frame(frame)
        if problem is not None:
            logger.warning(f"Detection skipped: invalid frame ({problem})")
            return DetectionResult.negative(FailureReason.INVALID_FRAME)

        try:
            return self._analyze(frame, use_roi)
        except (cv2.error, ValueError, TypeError) as e:
            logger.error(f"Detection failed: {e}")
            return DetectionResult.negative(FailureReason.PROCESSING_ERROR)

    def _analyze(self, frame: np.ndarray, use_roi: bool) -> DetectionResult:
        frame_height, frame_width = frame.shape[:2]

        region = frame
        roi: Optional[ROI] = None
        if use_roi:
            candidate_roi = self.compute_roi(frame_width, frame_height)
            if candidate_roi is not None and candidate_roi.fits_within(
                frame_width, frame_height
            ):
                roi = candidate_roi
                region = crop_to_roi(frame, roi)
            else:
                logger.debug("ROI unusable for this frame, searching the full frame")

        region_height, region_width = region.shape[:2]
        sharpness = estimate_sharpness(region, self.color_order)

        mask = build_edge_mask(
            region, self.params, self.config.preprocessing, self.color_order
        )
        candidates = extract_candidates(mask, self.params, self.config.contours)
        best = select_best_candidate(
            candidates,
            region_width,
            region_height,
            self.config.shape,
            self.config.scoring,
        )

        if best is None:
            logger.debug(
                f"No card found ({len(candidates)} candidates, sharpness={sharpness:.1f})"
            )
            return DetectionResult.negative(
                FailureReason.NO_CANDIDATE, sharpness_score=sharpness, roi=roi
            )

        corners = order_corners(
            quad_from_polygon(best.points), self.config.rectification.corner_order
        )
        points = translate_points(np.rint(corners).astype(np.int32), roi)
        polygon = translate_points(best.points, roi)

        logger.info(
            f"Card detected: score={best.score:.3f}, sharpness={sharpness:.1f}, "
            f"corners={points.tolist()}"
        )

        return DetectionResult(
            detected=True,
            points=points,
            sharpness_score=sharpness,
            score=best.score,
            failure_reason=FailureReason.NONE,
            roi=roi,
            polygon=polygon,
        )

    def rectify(
        self,
        frame: Optional[np.ndarray],
        points: Optional[Union[np.ndarray, list]],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Optional[np.ndarray]:
        """
        Warp the detected card into the canonical rectangle.

        Returns:
            Rectified image, or None if rectification is not possible.
        """
        return self.rectify_with_status(frame, points, width, height).image

    def rectify_with_status(
        self,
        frame: Optional[np.ndarray],
        points: Optional[Union[np.ndarray, list]],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> RectificationResult:
        """Rectify and keep the diagnostic failure reason."""
        if not self.backend.available:
            logger.warning("Rectification skipped: image-processing backend unavailable")
            return RectificationResult(
                image=None, failure_reason=FailureReason.LIBRARY_UNAVAILABLE
            )

        problem = validate_frame(frame)
        if problem is not None:
            logger.warning(f"Rectification skipped: invalid frame ({problem})")
            return RectificationResult(
                image=None, failure_reason=FailureReason.INVALID_FRAME
            )

        cfg = self.config.rectification
        return rectify(
            frame,
            points,
            width or cfg.output_width,
            height or cfg.output_height,
            interpolation=cfg.interpolation,
            strategy=cfg.corner_order,
        )


def detect_document(
    frame: Optional[np.ndarray],
    profile: DeviceProfile = DeviceProfile.DESKTOP,
    use_roi: bool = False,
    config: Optional[DetectionConfig] = None,
    color_order: str = "rgb",
) -> DetectionResult:
    """
    Convenience function for one-shot detection.

    Without a config the bundled one is used; it is parsed once per process.
    For a live stream, build one DocumentDetector and call analyze().

    Example:
        >>> result = detect_document(frame, profile=DeviceProfile.MOBILE)
        >>> result.detected
        True
    """
    detector = DocumentDetector(config=config, profile=profile, color_order=color_order)
    return detector.analyze(frame, use_roi=use_roi)
