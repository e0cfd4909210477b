"""
Visualization Utilities

Functions for drawing and plotting detection results.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import cv2
import matplotlib.pyplot as plt
import numpy as np

from src.document_detection.types import CORNER_LABELS, ROI

# RGB colours of the preview overlay
READY_COLOR = (16, 185, 129)  # green: card found and ready to capture
PENDING_COLOR = (234, 179, 8)  # yellow: card outline found, not ready
ROI_COLOR = (255, 255, 255)


def draw_detection(
    image: np.ndarray,
    points: Optional[np.ndarray],
    is_ready: bool = False,
    roi: Optional[ROI] = None,
    color_order: str = "rgb",
    thickness: int = 3,
    marker_radius: int = 5,
) -> np.ndarray:
    """
    Draw the detected outline and corner markers on a copy of the frame.

    Args:
        image: Frame to annotate (gray or colour).
        points: Polygon vertices with shape (N, 2), N >= 4, or None.
        is_ready: Green outline when True, yellow otherwise.
        roi: Optional guide frame to outline.
        color_order: Channel order of the frame ("rgb" or "bgr").
        thickness: Outline thickness in pixels.
        marker_radius: Corner marker radius in pixels.

    Returns:
        Annotated copy; the input frame is left untouched.
    """
    canvas = image.copy()
    if canvas.ndim == 3 and canvas.shape[2] == 1:
        canvas = canvas[:, :, 0]
    if canvas.ndim == 2:
        conversion = cv2.COLOR_GRAY2RGB if color_order == "rgb" else cv2.COLOR_GRAY2BGR
        canvas = cv2.cvtColor(canvas, conversion)

    def _color(rgb: Tuple[int, int, int]) -> Tuple[int, ...]:
        color = rgb if color_order == "rgb" else rgb[::-1]
        if canvas.shape[2] == 4:
            color = tuple(color) + (255,)
        return tuple(color)

    if roi is not None:
        cv2.rectangle(
            canvas,
            (roi.x, roi.y),
            (roi.x + roi.width - 1, roi.y + roi.height - 1),
            _color(ROI_COLOR),
            1,
        )

    if points is None or len(points) < 4:
        return canvas

    pts = np.rint(np.asarray(points)).astype(np.int32).reshape(-1, 1, 2)
    color = _color(READY_COLOR if is_ready else PENDING_COLOR)

    cv2.polylines(canvas, [pts], isClosed=True, color=color, thickness=thickness)
    for x, y in pts.reshape(-1, 2):
        cv2.circle(canvas, (int(x), int(y)), marker_radius, color, thickness=-1)

    return canvas


def plot_detection(
    image: np.ndarray,
    corners: np.ndarray,
    rectified: Optional[np.ndarray] = None,
    title: Optional[str] = None,
    save_path: Optional[Path] = None,
):
    """
    Plot a frame with labelled card corners, optionally beside the rectified card.

    Args:
        image: Frame (RGB)
        corners: Ordered corners [TL, TR, BR, BL]
        rectified: Optional rectified card image (RGB)
        title: Optional figure title
        save_path: Optional path to save figure; shown interactively otherwise
    """
    n_panels = 2 if rectified is not None else 1
    fig, axes = plt.subplots(1, n_panels, figsize=(8 * n_panels, 6))
    axes: List = list(np.atleast_1d(axes))

    ax = axes[0]
    ax.imshow(image, cmap="gray" if image.ndim == 2 else None)

    closed = np.vstack([corners, corners[:1]])
    ax.plot(closed[:, 0], closed[:, 1], "g-", linewidth=2)

    for label, (x, y) in zip(CORNER_LABELS, corners):
        ax.plot(x, y, "ro", markersize=8)
        ax.text(x + 5, y + 5, label, color="red", fontsize=10, weight="bold")
    ax.axis("off")

    if rectified is not None:
        axes[1].imshow(rectified, cmap="gray" if rectified.ndim == 2 else None)
        axes[1].set_title(f"Rectified {rectified.shape[1]}x{rectified.shape[0]}")
        axes[1].axis("off")

    if title:
        fig.suptitle(title)

    if save_path:
        plt.savefig(save_path, bbox_inches="tight", dpi=150)
        plt.close(fig)
    else:
        plt.show()
