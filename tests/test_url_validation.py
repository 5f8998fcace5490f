"""
Tests for URL normalization.
"""

import pytest

from a11y_scanner.services.errors import InvalidUrlError, MissingUrlError, ScanErrorKind
from a11y_scanner.services.url_validation import normalize_url


@pytest.mark.parametrize("raw, expected", [
    ("example.com", "https://example.com"),
    ("  example.com/path?q=1  ", "https://example.com/path?q=1"),
    ("http://example.com", "http://example.com"),
    ("https://example.com:8443/a", "https://example.com:8443/a"),
    ("HTTPS://Example.com", "https://Example.com"),
    ("Http://example.com/Path", "http://example.com/Path"),
    ("localhost:3000", "https://localhost:3000"),
])
def test_normalize_prepends_https(raw, expected):
    assert normalize_url(raw) == expected


@pytest.mark.parametrize("raw", [
    "example.com",
    "http://example.com/a",
    "sub.example.org:8080",
    "Http://example.com",
    "HTTPS://Example.com",
])
def test_normalize_is_idempotent(raw):
    once = normalize_url(raw)
    assert once.startswith(("http://", "https://"))
    assert normalize_url(once) == once


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_url(raw):
    with pytest.raises(MissingUrlError) as exc_info:
        normalize_url(raw)
    assert exc_info.value.kind == ScanErrorKind.MISSING_URL
    assert exc_info.value.user_message == "URL is required"


@pytest.mark.parametrize("raw", [
    "not a url",
    "http://",
    "https://",
    "ftp://example.com",
    "javascript://alert(1)",
    "http://exa mple.com",
    "http://example.com:notaport",
    "http://..example.com",
    "http://-example.com",
])
def test_invalid_url(raw):
    with pytest.raises(InvalidUrlError) as exc_info:
        normalize_url(raw)
    assert exc_info.value.kind == ScanErrorKind.INVALID_URL
    assert "http://" in exc_info.value.user_message
