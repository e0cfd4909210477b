"""
Device profile selection.

Chooses the MOBILE or DESKTOP parameter set (and the finer screen class
used for guide-frame sizing) from environment signals. Selection happens
once per session; the result is passed to the detector rather than
re-derived per frame.
"""

import logging
import re
from typing import Optional, Tuple

from src.document_detection.config_loader import DeviceConfig
from src.document_detection.types import DeviceProfile, ScreenClass

logger = logging.getLogger(__name__)


def is_mobile_environment(
    user_agent: Optional[str],
    viewport_width: Optional[int],
    config: Optional[DeviceConfig] = None,
) -> bool:
    """
    Check whether the capturing environment should use mobile parameters.

    A mobile user agent token or a viewport narrower than the mobile
    breakpoint is enough.

    Args:
        user_agent: Browser user-agent string (None if unknown).
        viewport_width: Viewport width in CSS pixels (None if unknown).
        config: Device signal configuration.

    Returns:
        True for mobile environments.
    """
    config = config or DeviceConfig()

    if user_agent and re.search(
        config.mobile_user_agent_pattern, user_agent, flags=re.IGNORECASE
    ):
        return True

    if viewport_width is not None and viewport_width < config.mobile_max_viewport_width:
        return True

    return False


def classify_screen(
    viewport_width: Optional[int],
    is_mobile: bool,
    config: Optional[DeviceConfig] = None,
) -> ScreenClass:
    """Bucket the viewport into the guide-frame size classes."""
    config = config or DeviceConfig()

    if viewport_width is None:
        return ScreenClass.MOBILE if is_mobile else ScreenClass.MEDIUM

    if viewport_width >= config.mobile_max_viewport_width:
        return ScreenClass.MEDIUM
    if viewport_width >= config.small_min_viewport_width:
        return ScreenClass.SMALL
    return ScreenClass.MOBILE


def select_device_profile(
    user_agent: Optional[str] = None,
    viewport_width: Optional[int] = None,
    config: Optional[DeviceConfig] = None,
) -> Tuple[DeviceProfile, ScreenClass]:
    """
    Select the device profile and screen class once per session.

    Args:
        user_agent: Browser user-agent string.
        viewport_width: Viewport width in CSS pixels.
        config: Device signal configuration.

    Returns:
        Tuple of (profile, screen_class).

    Example:
        >>> select_device_profile("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)", 390)
        (<DeviceProfile.MOBILE: 'mobile'>, <ScreenClass.MOBILE: 'mobile'>)
    """
    mobile = is_mobile_environment(user_agent, viewport_width, config)
    profile = DeviceProfile.MOBILE if mobile else DeviceProfile.DESKTOP
    screen = classify_screen(viewport_width, mobile, config)

    logger.info(
        f"Selected device profile {profile.value} "
        f"(screen class {screen.value}, viewport={viewport_width})"
    )

    return profile, screen


def default_screen_class(profile: DeviceProfile) -> ScreenClass:
    """Screen class assumed when only the profile is known."""
    if profile == DeviceProfile.MOBILE:
        return ScreenClass.MOBILE
    return ScreenClass.MEDIUM
