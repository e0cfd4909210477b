"""
Shape validation and scoring against ID-1 card geometry.

The gates are deliberately loose versions of the ID-1 ratio
(85.6mm / 53.98mm ~ 1.586) so that perspective skew and partial occlusion
do not reject a real card. Surviving candidates are ranked by:

    score = 0.4 * aspect_score + 0.6 * area_score
    aspect_score = 1 - |ratio - 1.586| / 1.586
    area_score = min(area_ratio / 0.7, 1)

area_score saturates once the card fills 70% of the frame, which rewards
close-up captures.
"""

import logging
from typing import List, Optional, Tuple

from src.document_detection.config_loader import ScoringConfig, ShapeConfig
from src.document_detection.types import ContourCandidate, ScoredCandidate

logger = logging.getLogger(__name__)


def validate_shape(
    candidate: ContourCandidate,
    frame_width: int,
    frame_height: int,
    config: Optional[ShapeConfig] = None,
) -> Tuple[bool, float, float]:
    """
    Check a candidate's bounding box against the ID-1 shape gates.

    Args:
        candidate: Polygon candidate.
        frame_width: Width of the analysed image.
        frame_height: Height of the analysed image.
        config: Shape thresholds.

    Returns:
        Tuple of (is_valid, aspect_ratio, bounding_area_ratio).

    Example:
        >>> pts = np.array([[100, 150], [500, 160], [510, 400], [90, 390]])
        >>> valid, ratio, area = validate_shape(ContourCandidate(pts, 98400, 1300), 640, 480)
        >>> valid
        True
    """
    config = config or ShapeConfig()

    if candidate.vertex_count < 4:
        return False, 0.0, 0.0

    _, _, width, height = candidate.bounding_box
    aspect_ratio = candidate.aspect_ratio
    frame_area = frame_width * frame_height
    area_ratio = candidate.bounding_area / frame_area if frame_area > 0 else 0.0

    if not config.aspect_ratio_min <= aspect_ratio <= config.aspect_ratio_max:
        logger.debug(
            f"Candidate rejected: aspect ratio {aspect_ratio:.2f} outside "
            f"[{config.aspect_ratio_min}, {config.aspect_ratio_max}]"
        )
        return False, aspect_ratio, area_ratio

    if not config.area_ratio_min <= area_ratio <= config.area_ratio_max:
        logger.debug(
            f"Candidate rejected: area ratio {area_ratio:.2%} outside "
            f"[{config.area_ratio_min:.0%}, {config.area_ratio_max:.0%}]"
        )
        return False, aspect_ratio, area_ratio

    if width < config.min_width_px or height < config.min_height_px:
        logger.debug(
            f"Candidate rejected: {width}x{height}px smaller than "
            f"{config.min_width_px}x{config.min_height_px}px"
        )
        return False, aspect_ratio, area_ratio

    return True, aspect_ratio, area_ratio


def aspect_score(aspect_ratio: float, config: Optional[ScoringConfig] = None) -> float:
    """Closeness of the aspect ratio to the ID-1 target (1.0 at the target)."""
    config = config or ScoringConfig()
    target = config.target_aspect_ratio
    return 1.0 - abs(aspect_ratio - target) / target


def area_score(area_ratio: float, config: Optional[ScoringConfig] = None) -> float:
    """Linear in the area ratio, saturating at 1.0 from area_saturation upwards."""
    config = config or ScoringConfig()
    return min(max(area_ratio, 0.0) / config.area_saturation, 1.0)


def compute_score(
    aspect_ratio: float,
    area_ratio: float,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Composite candidate score clipped to [0, 1].

    Args:
        aspect_ratio: Bounding-box width / height.
        area_ratio: Contour area / frame area.
        config: Scoring weights.

    Returns:
        Weighted score in [0.0, 1.0].
    """
    config = config or ScoringConfig()
    score = config.aspect_weight * aspect_score(
        aspect_ratio, config
    ) + config.area_weight * area_score(area_ratio, config)
    return float(min(max(score, 0.0), 1.0))


def score_candidate(
    candidate: ContourCandidate,
    frame_width: int,
    frame_height: int,
    shape_config: Optional[ShapeConfig] = None,
    scoring_config: Optional[ScoringConfig] = None,
) -> Optional[ScoredCandidate]:
    """
    Validate and score one candidate.

    Returns:
        ScoredCandidate, or None if the candidate fails shape validation.
    """
    scoring_config = scoring_config or ScoringConfig()

    is_valid, ratio, _ = validate_shape(candidate, frame_width, frame_height, shape_config)
    if not is_valid:
        return None

    # Ranking uses the enclosed contour area, gating uses the bounding box
    contour_area_ratio = candidate.area / (frame_width * frame_height)

    return ScoredCandidate(
        candidate=candidate,
        score=compute_score(ratio, contour_area_ratio, scoring_config),
        aspect_score=aspect_score(ratio, scoring_config),
        area_score=area_score(contour_area_ratio, scoring_config),
        area_ratio=contour_area_ratio,
    )


def select_best_candidate(
    candidates: List[ContourCandidate],
    frame_width: int,
    frame_height: int,
    shape_config: Optional[ShapeConfig] = None,
    scoring_config: Optional[ScoringConfig] = None,
) -> Optional[ScoredCandidate]:
    """
    Pick the single highest-scoring shape-valid candidate.

    Ties keep the candidate encountered first.

    Returns:
        Best ScoredCandidate, or None if no candidate survives validation.
    """
    best: Optional[ScoredCandidate] = None

    for candidate in candidates:
        scored = score_candidate(
            candidate, frame_width, frame_height, shape_config, scoring_config
        )
        if scored is None:
            continue
        if best is None or scored.score > best.score:
            best = scored

    if best is None:
        logger.debug(f"No shape-valid candidate among {len(candidates)}")
    else:
        logger.debug(
            f"Best candidate: score={best.score:.3f} "
            f"(aspect={best.aspect_score:.3f}, area={best.area_score:.3f}), "
            f"{best.candidate.vertex_count} vertices"
        )

    return best
