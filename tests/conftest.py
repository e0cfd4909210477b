"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import cv2
import numpy as np
import pytest

BACKGROUND_VALUE = 200
CARD_VALUE = 60

# Quadrilateral used by the end-to-end scenario (aspect ~1.6, ~32% of 640x480)
REFERENCE_CORNERS = np.array(
    [[100, 150], [500, 160], [510, 400], [90, 390]], dtype=np.int32
)


def render_card_frame(
    corners,
    width: int = 640,
    height: int = 480,
    channels: int = 3,
    background: int = BACKGROUND_VALUE,
    card: int = CARD_VALUE,
) -> np.ndarray:
    """Render a flat dark card polygon on a flat light background."""
    shape = (height, width) if channels == 1 else (height, width, channels)
    frame = np.full(shape, background, dtype=np.uint8)
    color = card if channels == 1 else (card,) * channels
    cv2.fillPoly(frame, [np.asarray(corners, dtype=np.int32)], color)
    if channels == 4:
        frame[:, :, 3] = 255
    return frame


def id1_corners_for_area(
    area_ratio: float, width: int = 640, height: int = 480
) -> np.ndarray:
    """Axis-aligned ID-1 rectangle centred in the frame covering area_ratio."""
    card_area = area_ratio * width * height
    card_w = np.sqrt(card_area * 1.586)
    card_h = card_w / 1.586
    x0 = (width - card_w) / 2
    y0 = (height - card_h) / 2
    return np.array(
        [[x0, y0], [x0 + card_w, y0], [x0 + card_w, y0 + card_h], [x0, y0 + card_h]],
        dtype=np.float32,
    ).round().astype(np.int32)


@pytest.fixture
def sample_quadrilateral_points():
    """Fixture providing sample 4-corner points in scrambled order."""
    return np.array(
        [
            [510, 400],  # Bottom-right
            [100, 150],  # Top-left
            [90, 390],  # Bottom-left
            [500, 160],  # Top-right
        ],
        dtype=np.float32,
    )


@pytest.fixture
def reference_frame():
    """640x480 RGB frame with the reference card quadrilateral."""
    return render_card_frame(REFERENCE_CORNERS)


@pytest.fixture
def blank_frame():
    """640x480 RGB frame with no document."""
    return np.full((480, 640, 3), BACKGROUND_VALUE, dtype=np.uint8)


@pytest.fixture
def checkerboard():
    """High-frequency 8px checkerboard pattern."""
    tile = 8
    yy, xx = np.indices((240, 320))
    return (((yy // tile) + (xx // tile)) % 2 * 255).astype(np.uint8)
