"""
Data types and structures for the Document Detection module.

Provides type-safe containers for device profiles, contour candidates,
regions of interest and per-frame detection results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

# ID-1 card format (ISO/IEC 7810): 85.60mm x 53.98mm
ID1_WIDTH_MM = 85.60
ID1_HEIGHT_MM = 53.98
ID1_ASPECT_RATIO = ID1_WIDTH_MM / ID1_HEIGHT_MM  # ~1.586

CORNER_LABELS = ["Top-Left", "Top-Right", "Bottom-Right", "Bottom-Left"]


class DeviceProfile(Enum):
    """Parameter set selector for the capturing device."""

    MOBILE = "mobile"
    DESKTOP = "desktop"


class ScreenClass(Enum):
    """Viewport size buckets used to size the guide frame."""

    MOBILE = "mobile"  # < 640px, or any mobile user agent
    SMALL = "small"  # 640-767px
    MEDIUM = "medium"  # >= 768px


class FailureReason(Enum):
    """Specific reasons for a negative detection or rectification."""

    NONE = "None"
    LIBRARY_UNAVAILABLE = "Library Unavailable"
    INVALID_FRAME = "Invalid Frame"
    NO_CANDIDATE = "No Candidate"
    INSUFFICIENT_POINTS = "Insufficient Points"
    PROCESSING_ERROR = "Processing Error"


@dataclass(frozen=True)
class ProfileParameters:
    """Detection parameters bound to one DeviceProfile."""

    blur_kernel_size: int
    canny_low: float
    canny_high: float
    min_contour_area: float
    epsilon_factor: float


@dataclass(frozen=True)
class ROI:
    """Axis-aligned region of interest in frame pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def offset(self) -> np.ndarray:
        """Origin of the window as an (x, y) vector."""
        return np.array([self.x, self.y], dtype=np.int32)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def fits_within(self, frame_width: int, frame_height: int) -> bool:
        """Check that the window has positive size and lies inside the frame."""
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.x + self.width <= frame_width
            and self.y + self.height <= frame_height
        )

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class ContourCandidate:
    """
    Polygon approximation of one outer contour.

    Attributes:
        points: Polygon vertices with shape (N, 2), int32, 4 <= N <= 12.
        area: Area enclosed by the raw contour (before approximation).
        perimeter: Closed arc length of the raw contour.
    """

    points: np.ndarray
    area: float
    perimeter: float

    @property
    def vertex_count(self) -> int:
        return int(self.points.shape[0])

    @property
    def bounding_box(self) -> tuple:
        """(x_min, y_min, width, height) of the polygon vertices."""
        xs = self.points[:, 0]
        ys = self.points[:, 1]
        x_min, y_min = int(xs.min()), int(ys.min())
        return x_min, y_min, int(xs.max()) - x_min, int(ys.max()) - y_min

    @property
    def bounding_area(self) -> float:
        _, _, width, height = self.bounding_box
        return float(width * height)

    @property
    def aspect_ratio(self) -> float:
        """Bounding-box width / height (0.0 for a degenerate box)."""
        _, _, width, height = self.bounding_box
        if height == 0:
            return 0.0
        return width / height


@dataclass
class ScoredCandidate:
    """A shape-valid candidate with its composite score in [0, 1]."""

    candidate: ContourCandidate
    score: float
    aspect_score: float
    area_score: float
    area_ratio: float

    @property
    def points(self) -> np.ndarray:
        return self.candidate.points


@dataclass
class RectificationResult:
    """
    Output of perspective rectification.

    Attributes:
        image: Canonical rectified image (None on failure).
        transform: 3x3 homography from source to canonical space.
        ordered_points: Source quad ordered [TL, TR, BR, BL].
        failure_reason: NONE on success.
    """

    image: Optional[np.ndarray]
    transform: Optional[np.ndarray] = None
    ordered_points: Optional[np.ndarray] = None
    failure_reason: FailureReason = FailureReason.NONE

    def is_success(self) -> bool:
        return self.image is not None


@dataclass
class DetectionResult:
    """
    Per-frame output from the detection pipeline.

    Attributes:
        detected: True when a card-shaped quad was found.
        points: Corners [TL, TR, BR, BL] in full-frame coordinates, shape (4, 2).
        sharpness_score: Laplacian variance of the analysed region.
        score: Composite shape score of the winning candidate.
        failure_reason: Why nothing was detected (NONE if detected).
        roi: Search window used for this frame, if any.
        polygon: Winning approximated polygon in full-frame coordinates.
    """

    detected: bool
    points: Optional[np.ndarray]
    sharpness_score: float
    score: Optional[float] = None
    failure_reason: FailureReason = FailureReason.NONE
    roi: Optional[ROI] = None
    polygon: Optional[np.ndarray] = field(default=None, repr=False)

    @classmethod
    def negative(
        cls,
        reason: FailureReason,
        sharpness_score: float = 0.0,
        roi: Optional[ROI] = None,
    ) -> "DetectionResult":
        """Build a 'not detected' result carrying the diagnostic cause."""
        return cls(
            detected=False,
            points=None,
            sharpness_score=sharpness_score,
            failure_reason=reason,
            roi=roi,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable view of the result."""
        return {
            "detected": self.detected,
            "points": self.points.tolist() if self.points is not None else None,
            "sharpness_score": round(float(self.sharpness_score), 4),
            "score": round(float(self.score), 4) if self.score is not None else None,
            "failure_reason": self.failure_reason.value,
            "roi": self.roi.to_dict() if self.roi else None,
        }
