"""
Scan error taxonomy.

Every failure a scan can end in is a ``ScanError`` carrying a ``kind`` and a
message that is safe to show to the person who submitted the URL.
"""

from enum import Enum
from typing import Any, Dict, Optional

from a11y_scanner.models.scan import NavigationFailureReason


class ScanErrorKind(str, Enum):
    """Error kind enumeration."""
    MISSING_URL = "missing_url"
    INVALID_URL = "invalid_url"
    RATE_LIMITED = "rate_limited"
    BROWSER_LAUNCH_ERROR = "browser_launch_error"
    NAVIGATION_FAILED = "navigation_failed"
    RULE_ENGINE_LOAD_ERROR = "rule_engine_load_error"
    RULE_ENGINE_EXECUTION_ERROR = "rule_engine_execution_error"
    INTERNAL_ERROR = "internal_error"


GENERIC_SCAN_FAILURE = "Failed to scan website. Please ensure the URL is accessible and try again."

NAVIGATION_MESSAGES = {
    NavigationFailureReason.TIMEOUT: (
        "The website took too long to load. Please try a different URL."
    ),
    NavigationFailureReason.NAME_NOT_RESOLVED: (
        "Could not find that website. Please check the URL and try again."
    ),
    NavigationFailureReason.CONNECTION_REFUSED: (
        "Connection refused. The website may be down."
    ),
    NavigationFailureReason.NETWORK_ERROR: (
        "A network error occurred while loading the website. Please try again."
    ),
    NavigationFailureReason.UNKNOWN: (
        "A network error occurred while loading the website. Please try again."
    ),
}


class ScanError(Exception):
    """Base class for scan failures."""

    kind: ScanErrorKind = ScanErrorKind.INTERNAL_ERROR
    default_user_message: str = GENERIC_SCAN_FAILURE
    # Caused by the submitted input rather than by this service
    expected: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def user_message(self) -> str:
        return self.default_user_message


class MissingUrlError(ScanError):
    kind = ScanErrorKind.MISSING_URL
    default_user_message = "URL is required"
    expected = True

    def __init__(self, message: str = "URL is required"):
        super().__init__(message)


class InvalidUrlError(ScanError):
    kind = ScanErrorKind.INVALID_URL
    default_user_message = (
        "Invalid URL format. Please enter a valid URL starting with http:// or https://"
    )
    expected = True

    def __init__(self, url: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid URL: {url!r}", details={"url": url})
        self.url = url


class RateLimitedError(ScanError):
    kind = ScanErrorKind.RATE_LIMITED
    expected = True

    def __init__(self, retry_after: int, limit: Optional[int] = None):
        super().__init__(
            f"Rate limit exceeded, retry after {retry_after}s",
            details={"retry_after": retry_after, "limit": limit},
        )
        self.retry_after = retry_after
        self.limit = limit

    @property
    def user_message(self) -> str:
        return f"Too many scan requests. Please try again in {self.retry_after} seconds."


class BrowserLaunchError(ScanError):
    kind = ScanErrorKind.BROWSER_LAUNCH_ERROR


class NavigationFailed(ScanError):
    kind = ScanErrorKind.NAVIGATION_FAILED
    expected = True

    def __init__(self, url: str, reason: NavigationFailureReason, message: Optional[str] = None):
        super().__init__(
            message or f"Navigation to {url} failed: {reason.value}",
            details={"url": url, "reason": reason.value},
        )
        self.url = url
        self.reason = reason

    @property
    def user_message(self) -> str:
        return NAVIGATION_MESSAGES[self.reason]


class RuleEngineLoadError(ScanError):
    kind = ScanErrorKind.RULE_ENGINE_LOAD_ERROR


class RuleEngineExecutionError(ScanError):
    kind = ScanErrorKind.RULE_ENGINE_EXECUTION_ERROR


class ScanInternalError(ScanError):
    kind = ScanErrorKind.INTERNAL_ERROR
