"""
ID Card Detection Command-Line Tool.

Runs the document detector on an image, a video file or a camera stream and
reports one JSON result per analysed frame.

Usage:
    # Detect on a single photo and save the rectified card
    python scripts/detect_document.py --image card.jpg --rectified-out card_rect.jpg

    # Analyse every 5th frame of a video with mobile parameters
    python scripts/detect_document.py --video capture.mp4 --profile mobile --stride 5

    # Live camera, stop at the first detection, restrict search to the guide frame
    python scripts/detect_document.py --camera 0 --use-roi --stop-on-detect
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.document_detection import DetectionResult, DeviceProfile, DocumentDetector
from src.document_detection.config_loader import get_default_config, load_config
from src.utils.io import load_image
from src.utils.logging_config import setup_logging
from src.utils.visualization import draw_detection

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Detect and rectify ID-1 cards in images or video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--image", type=Path, help="Path to an image file")
    source.add_argument("--video", type=Path, help="Path to a video file")
    source.add_argument("--camera", type=int, help="Camera device index")

    parser.add_argument(
        "--profile",
        choices=[p.value for p in DeviceProfile],
        default=DeviceProfile.DESKTOP.value,
        help="Device parameter set (default: desktop)",
    )
    parser.add_argument("--config", type=Path, help="Custom detection config YAML")
    parser.add_argument(
        "--use-roi", action="store_true", help="Search only the centered guide frame"
    )
    parser.add_argument(
        "--stride", type=int, default=1, help="Analyse every Nth video frame"
    )
    parser.add_argument(
        "--max-frames", type=int, default=None, help="Stop after N analysed frames"
    )
    parser.add_argument(
        "--stop-on-detect",
        action="store_true",
        help="Stop the stream at the first detected card",
    )
    parser.add_argument(
        "--rectified-out", type=Path, help="Write the rectified card of the last detection"
    )
    parser.add_argument(
        "--overlay-out", type=Path, help="Write the annotated frame of the last detection"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args(argv)
    if args.stride < 1:
        parser.error("--stride must be at least 1")
    return args


def iter_frames(args: argparse.Namespace) -> Iterator[Tuple[int, np.ndarray]]:
    """Yield (frame_index, BGR frame) from the selected source."""
    if args.image is not None:
        image = load_image(args.image, color_order="bgr")
        if image is None:
            raise ValueError(f"Could not decode image: {args.image}")
        yield 0, image
        return

    source = str(args.video) if args.video is not None else args.camera
    capture = cv2.VideoCapture(source)
    if not capture.isOpened():
        raise ValueError(f"Could not open video source: {source}")

    try:
        index = 0
        while True:
            ok, frame = capture.read()
            if not ok:
                break
            if index % args.stride == 0:
                yield index, frame
            index += 1
    finally:
        capture.release()


def run(args: argparse.Namespace) -> int:
    """Analyse the source and write requested outputs. Returns exit code."""
    config = load_config(args.config) if args.config else get_default_config()
    detector = DocumentDetector(
        config=config, profile=DeviceProfile(args.profile), color_order="bgr"
    )

    last_hit: Optional[Tuple[np.ndarray, DetectionResult]] = None
    analysed = 0

    for index, frame in iter_frames(args):
        result = detector.analyze(frame, use_roi=args.use_roi)
        print(json.dumps({"frame": index, **result.to_dict()}))
        analysed += 1

        if result.detected:
            last_hit = (frame, result)
            if args.stop_on_detect:
                break

        if args.max_frames is not None and analysed >= args.max_frames:
            break

    logger.info(f"Analysed {analysed} frame(s), card found: {last_hit is not None}")

    if last_hit is None:
        return 1

    frame, result = last_hit

    if args.rectified_out:
        rectified = detector.rectify(frame, result.points)
        if rectified is not None:
            args.rectified_out.parent.mkdir(parents=True, exist_ok=True)
            cv2.imwrite(str(args.rectified_out), rectified)
            logger.info(f"Rectified card saved to {args.rectified_out}")

    if args.overlay_out:
        overlay = draw_detection(
            frame, result.points, is_ready=True, roi=result.roi, color_order="bgr"
        )
        args.overlay_out.parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(args.overlay_out), overlay)
        logger.info(f"Overlay saved to {args.overlay_out}")

    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        return run(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
