"""
Image-processing backend capability check.

The detector depends on a fixed set of OpenCV primitives. This module
verifies them once, on first use, and hands back an immutable capability
handle. Callers block only on that first check; later calls hit the cache.
"""

import importlib
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

REQUIRED_PRIMITIVES: Tuple[str, ...] = (
    "cvtColor",
    "convertScaleAbs",
    "equalizeHist",
    "GaussianBlur",
    "adaptiveThreshold",
    "Canny",
    "bitwise_or",
    "getStructuringElement",
    "morphologyEx",
    "dilate",
    "findContours",
    "contourArea",
    "arcLength",
    "approxPolyDP",
    "convexHull",
    "minAreaRect",
    "boxPoints",
    "Laplacian",
    "getPerspectiveTransform",
    "warpPerspective",
    "perspectiveTransform",
)


@dataclass(frozen=True)
class BackendCapabilities:
    """
    Result of the one-time backend initialisation.

    Attributes:
        available: True when every required primitive is present.
        version: Backend version string (None if import failed).
        missing: Names of required primitives the backend lacks.
        error: Import error message, if any.
    """

    available: bool
    version: Optional[str] = None
    missing: Tuple[str, ...] = ()
    error: Optional[str] = None


def inspect_backend(module_name: str = "cv2") -> BackendCapabilities:
    """
    Import the backend module and check the required primitives.

    Args:
        module_name: Importable module providing the primitives.

    Returns:
        BackendCapabilities describing what was found.
    """
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.warning(f"Image-processing backend '{module_name}' unavailable: {e}")
        return BackendCapabilities(available=False, error=str(e))

    missing = tuple(name for name in REQUIRED_PRIMITIVES if not hasattr(module, name))
    version = getattr(module, "__version__", None)

    if missing:
        logger.warning(
            f"Backend '{module_name}' {version} lacks required primitives: {missing}"
        )
        return BackendCapabilities(available=False, version=version, missing=missing)

    logger.info(f"Image-processing backend ready: {module_name} {version}")
    return BackendCapabilities(available=True, version=version)


@lru_cache(maxsize=None)
def load_backend(module_name: str = "cv2") -> BackendCapabilities:
    """Initialise the backend once and cache the capability handle."""
    return inspect_backend(module_name)
