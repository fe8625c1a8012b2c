"""
User-Agent classification into browser, OS and device category.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from user_agents import parse as parse_ua

logger = logging.getLogger(__name__)

DEVICE_DESKTOP = "desktop"
DEVICE_MOBILE = "mobile"
DEVICE_TABLET = "tablet"

UNKNOWN_FAMILY = "Other"


@dataclass(frozen=True)
class UserAgentInfo:
    browser: Optional[str] = None
    os: Optional[str] = None
    device: Optional[str] = None


def _family_with_version(family: Optional[str], version: Optional[str]) -> Optional[str]:
    if not family or family == UNKNOWN_FAMILY:
        return None
    if version:
        return f"{family} {version}"
    return family


def _device_category(ua) -> str:
    if ua.is_tablet:
        return DEVICE_TABLET
    if ua.is_mobile:
        return DEVICE_MOBILE
    # Wearables, TVs and consoles are grouped with mobile
    if not ua.is_pc and ua.is_touch_capable and not ua.is_bot:
        return DEVICE_MOBILE
    return DEVICE_DESKTOP


def parse_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """
    Extract browser, OS and device category from a User-Agent header.

    Args:
        user_agent: Raw header value

    Returns:
        UserAgentInfo; all fields None when the header is missing or unparsable
    """
    if not isinstance(user_agent, str) or not user_agent.strip():
        return UserAgentInfo()

    try:
        ua = parse_ua(user_agent)
        return UserAgentInfo(
            browser=_family_with_version(ua.browser.family, ua.browser.version_string),
            os=_family_with_version(ua.os.family, ua.os.version_string),
            device=_device_category(ua),
        )
    except Exception as e:
        logger.debug(f"User-Agent parsing failed: {str(e)}")
        return UserAgentInfo()
