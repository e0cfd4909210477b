"""
I/O Utilities

File and buffer input/output: YAML files, image decoding from raw
bytes or base64 data URLs, and base64 JPEG encoding for web consumers.
"""

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np
import yaml

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 92

_MIME_TO_EXT = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def load_yaml(file_path: Path) -> Optional[Dict[str, Any]]:
    """Load YAML file (None for an empty document)."""
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _strip_data_url(data: str) -> str:
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    return data


def decode_image(
    data: Union[bytes, str], color_order: str = "bgr"
) -> Optional[np.ndarray]:
    """
    Decode an encoded image into a pixel buffer.

    Args:
        data: Raw encoded bytes (JPEG/PNG/...), a base64 string or a
              "data:image/...;base64," URL.
        color_order: "bgr" (OpenCV default) or "rgb" for colour output.

    Returns:
        Decoded uint8 image (alpha preserved), or None if decoding fails.

    Example:
        >>> frame = decode_image("data:image/jpeg;base64,/9j/4AAQ...", color_order="rgb")
    """
    if isinstance(data, str):
        try:
            data = base64.b64decode(_strip_data_url(data), validate=False)
        except ValueError as e:
            logger.warning(f"Invalid base64 image payload: {e}")
            return None

    buffer = np.frombuffer(data, dtype=np.uint8)
    if buffer.size == 0:
        return None

    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if image is None:
        logger.warning("Image decoding failed: unsupported or corrupt data")
        return None

    if color_order == "rgb" and image.ndim == 3:
        conversion = cv2.COLOR_BGRA2RGBA if image.shape[2] == 4 else cv2.COLOR_BGR2RGB
        image = cv2.cvtColor(image, conversion)

    return image


def load_image(file_path: Path, color_order: str = "bgr") -> Optional[np.ndarray]:
    """Read and decode an image file."""
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")
    return decode_image(file_path.read_bytes(), color_order)


def encode_image_base64(
    image: Optional[np.ndarray],
    mime_type: str = "image/jpeg",
    quality: int = DEFAULT_JPEG_QUALITY,
    color_order: str = "bgr",
) -> Optional[str]:
    """
    Encode a pixel buffer as a base64 data URL.

    Args:
        image: Gray, 3-channel or 4-channel uint8 image.
        mime_type: Output MIME type (JPEG, PNG or WebP).
        quality: JPEG/WebP quality (0-100).
        color_order: Channel order of colour input.

    Returns:
        "data:<mime>;base64,<payload>" string, or None on failure.
    """
    if image is None or image.size == 0:
        return None

    ext = _MIME_TO_EXT.get(mime_type)
    if ext is None:
        logger.warning(f"Unsupported image MIME type: {mime_type}")
        return None

    if color_order == "rgb" and image.ndim == 3 and image.shape[2] in (3, 4):
        conversion = cv2.COLOR_RGBA2BGRA if image.shape[2] == 4 else cv2.COLOR_RGB2BGR
        image = cv2.cvtColor(image, conversion)

    if ext == ".jpg" and image.ndim == 3 and image.shape[2] == 4:
        # JPEG has no alpha channel
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    params = []
    if ext == ".jpg":
        params = [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    elif ext == ".webp":
        params = [cv2.IMWRITE_WEBP_QUALITY, int(quality)]

    ok, encoded = cv2.imencode(ext, image, params)
    if not ok:
        logger.warning(f"Image encoding to {mime_type} failed")
        return None

    payload = base64.b64encode(encoded.tobytes()).decode("ascii")
    return f"data:{mime_type};base64,{payload}"
