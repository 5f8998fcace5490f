"""
Wait strategies for loading third-party pages with a tiered fallback cascade.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from a11y_scanner.models.scan import NavigationFailureReason

logger = logging.getLogger(__name__)


class WaitStrategy(str, Enum):
    """Playwright ``wait_until`` values used by the cascade."""
    NETWORK_IDLE = "networkidle"  # No network connections for at least 500ms
    DOM_CONTENT_LOADED = "domcontentloaded"  # Initial HTML parsed
    LOAD = "load"  # Full page load event


@dataclass(frozen=True)
class NavigationTier:
    """One step of the navigation cascade."""
    index: int
    strategy: WaitStrategy
    timeout_ms: int


CASCADE_ORDER = (
    WaitStrategy.NETWORK_IDLE,
    WaitStrategy.DOM_CONTENT_LOADED,
    WaitStrategy.LOAD,
)


def build_navigation_tiers(timeouts_ms: Sequence[int]) -> List[NavigationTier]:
    """
    Pair the cascade order with per-tier timeouts.

    Args:
        timeouts_ms: Timeouts for network idle, DOM content loaded and load,
            in that order

    Returns:
        Ordered list of NavigationTier
    """
    if len(timeouts_ms) != len(CASCADE_ORDER):
        raise ValueError(f"Expected {len(CASCADE_ORDER)} tier timeouts, got {len(timeouts_ms)}")
    if any(t <= 0 for t in timeouts_ms):
        raise ValueError("Tier timeouts must be positive")

    return [
        NavigationTier(index=i + 1, strategy=strategy, timeout_ms=timeout)
        for i, (strategy, timeout) in enumerate(zip(CASCADE_ORDER, timeouts_ms))
    ]


# Chromium net:: codes and their Firefox/WebKit counterparts
_NAME_NOT_RESOLVED_MARKERS = (
    "ERR_NAME_NOT_RESOLVED",
    "NS_ERROR_UNKNOWN_HOST",
    "Could not resolve host",
)
_CONNECTION_REFUSED_MARKERS = (
    "ERR_CONNECTION_REFUSED",
    "NS_ERROR_CONNECTION_REFUSED",
    "Could not connect to server",
)
_NETWORK_ERROR_MARKERS = (
    "net::ERR_",
    "NS_ERROR_",
    "NS_BINDING_ABORTED",
)


def classify_navigation_error(error: Optional[BaseException], timed_out: bool = False) -> NavigationFailureReason:
    """
    Map a navigation exception to a failure reason.

    Args:
        error: Exception raised by ``page.goto``
        timed_out: Whether the error was a navigation timeout

    Returns:
        NavigationFailureReason
    """
    if timed_out:
        return NavigationFailureReason.TIMEOUT
    if error is None:
        return NavigationFailureReason.UNKNOWN

    message = str(error)
    if any(marker in message for marker in _NAME_NOT_RESOLVED_MARKERS):
        return NavigationFailureReason.NAME_NOT_RESOLVED
    if any(marker in message for marker in _CONNECTION_REFUSED_MARKERS):
        return NavigationFailureReason.CONNECTION_REFUSED
    if "ERR_TIMED_OUT" in message or "NS_ERROR_NET_TIMEOUT" in message:
        return NavigationFailureReason.TIMEOUT
    if any(marker in message for marker in _NETWORK_ERROR_MARKERS):
        return NavigationFailureReason.NETWORK_ERROR
    return NavigationFailureReason.UNKNOWN
