"""
Tests for error classification and HTTP translation.
"""

import pytest

from a11y_scanner.api.errors.exceptions import to_api_exception
from a11y_scanner.core.sentry_config import before_send_filter
from a11y_scanner.models.scan import NavigationFailureReason
from a11y_scanner.services.errors import (
    GENERIC_SCAN_FAILURE,
    BrowserLaunchError,
    InvalidUrlError,
    MissingUrlError,
    NavigationFailed,
    RateLimitedError,
    RuleEngineExecutionError,
    RuleEngineLoadError,
    ScanInternalError,
)


@pytest.mark.parametrize("error, status_code", [
    (MissingUrlError(), 400),
    (InvalidUrlError("nope"), 400),
    (RateLimitedError(12, limit=10), 429),
    (BrowserLaunchError("no chromium"), 500),
    (NavigationFailed("https://x.test", NavigationFailureReason.TIMEOUT), 500),
    (RuleEngineLoadError("cdn blocked"), 500),
    (RuleEngineExecutionError("axe threw"), 500),
    (ScanInternalError("boom"), 500),
])
def test_status_codes(error, status_code):
    assert to_api_exception(error, "req-1").status_code == status_code


def test_rate_limit_translation():
    exc = to_api_exception(RateLimitedError(12, limit=10))

    assert exc.headers["Retry-After"] == "12"
    assert exc.headers["X-RateLimit-Limit"] == "10"
    assert exc.details == {"retryAfter": 12}
    assert exc.message == "Too many scan requests. Please try again in 12 seconds."


def test_internal_failures_hide_details():
    for error in (BrowserLaunchError("chromium missing at /opt"), RuleEngineLoadError("cdn 503")):
        exc = to_api_exception(error)
        assert exc.message == GENERIC_SCAN_FAILURE
        assert "/opt" not in exc.message


@pytest.mark.parametrize("reason, fragment", [
    (NavigationFailureReason.TIMEOUT, "took too long"),
    (NavigationFailureReason.NAME_NOT_RESOLVED, "Could not find"),
    (NavigationFailureReason.CONNECTION_REFUSED, "Connection refused"),
    (NavigationFailureReason.NETWORK_ERROR, "network error"),
])
def test_navigation_messages(reason, fragment):
    exc = to_api_exception(NavigationFailed("https://x.test", reason))
    assert fragment in exc.message
    assert exc.details["reason"] == reason.value


def test_sentry_drops_expected_errors():
    error = InvalidUrlError("nope")
    assert before_send_filter({}, {"exc_info": (type(error), error, None)}) is None

    unexpected = BrowserLaunchError("no chromium")
    event = {"request": {"headers": {"X-Forwarded-For": "1.2.3.4"}}}
    filtered = before_send_filter(event, {"exc_info": (type(unexpected), unexpected, None)})
    assert filtered["request"]["headers"]["X-Forwarded-For"] == "[Filtered]"
