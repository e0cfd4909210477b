"""
Perspective rectification of the detected card.

Orders the card corners, computes the homography onto the canonical
rectangle (default 800x500) and resamples the frame through it.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from src.document_detection.types import FailureReason, RectificationResult

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_WIDTH = 800
DEFAULT_OUTPUT_HEIGHT = 500

INTERPOLATION_FLAGS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}

# Direction of the top-left corner seen from the centroid (y points down)
_TOP_LEFT_ANGLE = -3 * np.pi / 4


def _order_by_angle(pts: np.ndarray, center: np.ndarray) -> np.ndarray:
    angles = np.arctan2(pts[:, 1] - center[1], pts[:, 0] - center[0])
    # Ascending atan2 with y pointing down walks the quad clockwise on screen
    order = np.argsort(angles, kind="stable")
    cycle = pts[order]
    # Circular distance of each corner from the top-left direction
    offset = np.abs((angles[order] - _TOP_LEFT_ANGLE + np.pi) % (2 * np.pi) - np.pi)
    start = int(np.argmin(offset))
    return np.roll(cycle, -start, axis=0)


def _order_by_quadrant(pts: np.ndarray, center: np.ndarray) -> np.ndarray:
    angles = np.arctan2(pts[:, 1] - center[1], pts[:, 0] - center[0])
    by_angle = pts[np.argsort(angles, kind="stable")]
    left = by_angle[:, 0] < center[0]
    right = by_angle[:, 0] > center[0]
    top = by_angle[:, 1] < center[1]
    bottom = by_angle[:, 1] > center[1]

    ordered = []
    for position, in_quadrant in enumerate(
        (left & top, right & top, right & bottom, left & bottom)
    ):
        hits = np.flatnonzero(in_quadrant)
        # Empty quadrant: positional guess from the angle-sorted list
        ordered.append(by_angle[hits[0]] if hits.size else by_angle[position])
    return np.array(ordered, dtype=np.float32)


def order_corners(
    points: Union[np.ndarray, list], strategy: str = "angle"
) -> np.ndarray:
    """
    Order 4 points as Top-Left, Top-Right, Bottom-Right, Bottom-Left.

    Strategies:
    - "angle": sort by angle around the centroid (clockwise on screen) and
      start the cycle at the point pointing most towards the top-left. The
      result is always a permutation of the input and never self-intersecting.
    - "quadrant": classify each point by its quadrant relative to the
      centroid; an empty quadrant falls back to the angle-sorted position.
      Near-axis-aligned or degenerate quads can get a corner assigned twice.

    Args:
        points: 4 points with shape (4, 2), any order.
        strategy: "angle" or "quadrant".

    Returns:
        float32 array of shape (4, 2) ordered [TL, TR, BR, BL].

    Raises:
        ValueError: If input does not contain exactly 4 points or the
                    strategy is unknown.

    Example:
        >>> pts = np.array([[500, 160], [90, 390], [100, 150], [510, 400]])
        >>> order_corners(pts)[0]
        array([100., 150.], dtype=float32)
    """
    pts = np.array(points, dtype=np.float32)

    if pts.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
        )

    center = pts.mean(axis=0)

    if strategy == "angle":
        ordered = _order_by_angle(pts, center)
    elif strategy == "quadrant":
        ordered = _order_by_quadrant(pts, center)
    else:
        raise ValueError(f"Unknown corner ordering strategy: {strategy!r}")

    logger.debug(
        f"Ordered corners ({strategy}): TL={ordered[0]}, TR={ordered[1]}, "
        f"BR={ordered[2]}, BL={ordered[3]}"
    )

    return ordered.astype(np.float32)


def is_convex_quadrilateral(rect: np.ndarray) -> bool:
    """
    Check if 4 ordered points form a convex quadrilateral.

    A quadrilateral is convex when the 2D cross products of consecutive
    edges (TL->TR->BR->BL->TL) all share the same sign.

    Args:
        rect: Ordered points [TL, TR, BR, BL] with shape (4, 2).

    Returns:
        True if the quadrilateral is convex, False otherwise.
    """
    rect = np.asarray(rect, dtype=np.float64)
    cross_products = []

    for i in range(4):
        p1 = rect[i]
        p2 = rect[(i + 1) % 4]
        p3 = rect[(i + 2) % 4]

        v1 = p2 - p1
        v2 = p3 - p2
        cross_products.append(v1[0] * v2[1] - v1[1] * v2[0])

    positive = [cp > 1e-6 for cp in cross_products]
    negative = [cp < -1e-6 for cp in cross_products]

    return all(positive) or all(negative)


def quad_from_polygon(polygon: Union[np.ndarray, list]) -> np.ndarray:
    """
    Reduce a 4-12 vertex polygon to its 4 dominant corners.

    Four-vertex input is returned unchanged. Otherwise the convex hull is
    re-approximated with a growing epsilon until exactly 4 vertices remain;
    if that never happens, the minimum-area rotated rectangle is used.

    Args:
        polygon: Vertices with shape (N, 2), N >= 4.

    Returns:
        float32 array of shape (4, 2), unordered.

    Raises:
        ValueError: If fewer than 4 vertices are given.
    """
    pts = np.asarray(polygon, dtype=np.float32).reshape(-1, 2)

    if len(pts) < 4:
        raise ValueError(f"Need at least 4 vertices, got {len(pts)}")

    if len(pts) == 4:
        return pts

    hull = cv2.convexHull(pts).reshape(-1, 1, 2)
    if len(hull) == 4:
        return hull.reshape(4, 2)

    if len(hull) > 4:
        perimeter = cv2.arcLength(hull, True)
        for factor in np.linspace(0.01, 0.2, 20):
            approx = cv2.approxPolyDP(hull, float(factor * perimeter), True)
            if len(approx) == 4:
                logger.debug(
                    f"Reduced {len(pts)}-vertex polygon to quad at epsilon factor {factor:.2f}"
                )
                return approx.reshape(4, 2).astype(np.float32)
            if len(approx) < 4:
                break

    logger.debug(f"Falling back to min-area rectangle for {len(pts)}-vertex polygon")
    return cv2.boxPoints(cv2.minAreaRect(pts)).astype(np.float32)


def canonical_corners(width: int, height: int) -> np.ndarray:
    """Destination corners (0,0), (W,0), (W,H), (0,H)."""
    return np.array(
        [[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float32
    )


def compute_perspective_transform(
    ordered_points: np.ndarray,
    width: int = DEFAULT_OUTPUT_WIDTH,
    height: int = DEFAULT_OUTPUT_HEIGHT,
) -> np.ndarray:
    """Homography mapping the ordered quad onto the canonical rectangle."""
    src = np.asarray(ordered_points, dtype=np.float32)
    return cv2.getPerspectiveTransform(src, canonical_corners(width, height))


def project_points(
    points: Union[np.ndarray, list], transform: np.ndarray
) -> np.ndarray:
    """
    Map points through a 3x3 homography.

    Args:
        points: Points with shape (N, 2).
        transform: 3x3 perspective matrix.

    Returns:
        Projected points with shape (N, 2), float32.
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 1, 2)
    return cv2.perspectiveTransform(pts, np.asarray(transform, dtype=np.float64)).reshape(
        -1, 2
    )


def _as_point_array(points) -> np.ndarray:
    """Coerce (N, 2) or OpenCV (N, 1, 2) coordinates to a float32 (N, 2) array."""
    pts = np.asarray(points if points is not None else [], dtype=np.float32)
    if pts.size == 0:
        return pts.reshape(0, 2)
    if pts.ndim == 3 and pts.shape[1] == 1:
        pts = pts.reshape(-1, 2)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"expected points with shape (N, 2), got shape {pts.shape}")
    if not np.all(np.isfinite(pts)):
        raise ValueError("points contain non-finite coordinates")
    return pts


def rectify(
    image: Optional[np.ndarray],
    points: Optional[Union[np.ndarray, list]],
    width: int = DEFAULT_OUTPUT_WIDTH,
    height: int = DEFAULT_OUTPUT_HEIGHT,
    interpolation: str = "linear",
    strategy: str = "angle",
) -> RectificationResult:
    """
    Warp the card quad into a canonical top-down rectangle.

    Never rectifies partially: with fewer than 4 points the result carries
    no image and FailureReason.INSUFFICIENT_POINTS. Polygons with more than
    4 vertices are reduced to their 4 dominant corners first.

    Never raises: unusable images and output sizes give INVALID_FRAME,
    points that are not an (N, 2) coordinate array give INSUFFICIENT_POINTS
    and backend failures give PROCESSING_ERROR.

    Args:
        image: Source frame (any channel count).
        points: Card corners in frame coordinates, any order.
        width: Canonical output width.
        height: Canonical output height.
        interpolation: Resampling method name.
        strategy: Corner ordering strategy.

    Returns:
        RectificationResult with the rectified image and homography.

    Example:
        >>> result = rectify(frame, [[100, 150], [500, 160], [510, 400], [90, 390]])
        >>> result.image.shape[:2]
        (500, 800)
    """
    if not isinstance(image, np.ndarray) or image.ndim not in (2, 3) or image.size == 0:
        logger.warning("Rectification skipped: invalid input image")
        return RectificationResult(image=None, failure_reason=FailureReason.INVALID_FRAME)

    try:
        pts = _as_point_array(points)
    except (ValueError, TypeError) as e:
        logger.warning(f"Rectification skipped: malformed points ({e})")
        return RectificationResult(
            image=None, failure_reason=FailureReason.INSUFFICIENT_POINTS
        )

    if len(pts) < 4:
        logger.warning(f"Rectification skipped: {len(pts)} points supplied, need 4")
        return RectificationResult(
            image=None, failure_reason=FailureReason.INSUFFICIENT_POINTS
        )

    if (
        not isinstance(width, (int, np.integer))
        or not isinstance(height, (int, np.integer))
        or width <= 0
        or height <= 0
    ):
        logger.warning(f"Rectification skipped: invalid output size {width}x{height}")
        return RectificationResult(image=None, failure_reason=FailureReason.INVALID_FRAME)

    try:
        quad = quad_from_polygon(pts) if len(pts) > 4 else pts
        ordered = order_corners(quad, strategy)
        transform = compute_perspective_transform(ordered, width, height)
        rectified = cv2.warpPerspective(
            image,
            transform,
            (int(width), int(height)),
            flags=INTERPOLATION_FLAGS.get(interpolation, cv2.INTER_LINEAR),
        )
    except (cv2.error, ValueError, TypeError) as e:
        logger.error(f"Rectification failed: {e}")
        return RectificationResult(
            image=None, failure_reason=FailureReason.PROCESSING_ERROR
        )

    logger.info(f"Rectified card quad to {width}x{height} canonical image")

    return RectificationResult(
        image=rectified, transform=transform, ordered_points=ordered
    )


def rectify_document(
    image: Optional[np.ndarray],
    points: Optional[Union[np.ndarray, list]],
    width: int = DEFAULT_OUTPUT_WIDTH,
    height: int = DEFAULT_OUTPUT_HEIGHT,
) -> Optional[np.ndarray]:
    """Rectified canonical image, or None when rectification is not possible."""
    return rectify(image, points, width, height).image
