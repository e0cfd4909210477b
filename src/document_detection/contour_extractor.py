"""
Candidate contour extraction from the binary edge mask.

Only outer contours are considered; holes inside a blob (card text, photo,
chip) never become candidates on their own.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from src.document_detection.config_loader import ContourConfig
from src.document_detection.types import ContourCandidate, ProfileParameters

logger = logging.getLogger(__name__)


def find_outer_contours(mask: np.ndarray) -> List[np.ndarray]:
    """Return outer contours of the mask with simple chain approximation."""
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


def approximate_polygon(contour: np.ndarray, epsilon_factor: float) -> np.ndarray:
    """
    Douglas-Peucker approximation with epsilon relative to the perimeter.

    Args:
        contour: OpenCV contour, shape (N, 1, 2).
        epsilon_factor: Fraction of the closed perimeter used as epsilon.

    Returns:
        Polygon vertices with shape (M, 2), int32.
    """
    epsilon = epsilon_factor * cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, epsilon, True)
    return approx.reshape(-1, 2).astype(np.int32)


def extract_candidates(
    mask: np.ndarray,
    params: ProfileParameters,
    config: Optional[ContourConfig] = None,
) -> List[ContourCandidate]:
    """
    Extract polygon candidates from a binary mask.

    Per contour:
    1. Reject if enclosed area < profile minimum (sensor noise, ID chip).
    2. Approximate to a polygon with epsilon = factor * perimeter.
    3. Reject if the vertex count is outside [min_vertices, max_vertices].
       The loose upper bound tolerates fingers over the card edge.

    Args:
        mask: Binary uint8 mask.
        params: Device profile parameters (minimum area, epsilon factor).
        config: Vertex count bounds.

    Returns:
        Surviving candidates in contour enumeration order, with vertices in
        the mask's coordinate space.
    """
    config = config or ContourConfig()

    contours = find_outer_contours(mask)
    candidates: List[ContourCandidate] = []
    rejected_area = 0
    rejected_vertices = 0

    for contour in contours:
        area = cv2.contourArea(contour)
        if area < params.min_contour_area:
            rejected_area += 1
            continue

        perimeter = cv2.arcLength(contour, True)
        polygon = approximate_polygon(contour, params.epsilon_factor)

        if not config.min_vertices <= len(polygon) <= config.max_vertices:
            rejected_vertices += 1
            continue

        candidates.append(
            ContourCandidate(points=polygon, area=float(area), perimeter=float(perimeter))
        )

    logger.debug(
        f"Contours: {len(contours)} found, {rejected_area} too small, "
        f"{rejected_vertices} bad vertex count, {len(candidates)} kept"
    )

    return candidates
