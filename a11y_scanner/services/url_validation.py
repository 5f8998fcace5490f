"""
Target URL validation and normalization.
"""

import re
from typing import Optional
from urllib.parse import urlsplit

from a11y_scanner.services.errors import InvalidUrlError, MissingUrlError

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_SCHEME = "https"

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*)://")
_INVALID_HOST_CHARS = set(' \t\r\n<>"{}|\\^`%')


def normalize_url(raw_url: Optional[str]) -> str:
    """
    Validate a user-supplied URL and qualify it with a scheme.

    Input without a scheme gets ``https://`` prepended. Normalizing an
    already normalized URL returns it unchanged.

    Args:
        raw_url: URL as typed by the user

    Returns:
        URL beginning with ``http://`` or ``https://``

    Raises:
        MissingUrlError: Input is empty or blank
        InvalidUrlError: Input cannot be parsed as an http(s) URL
    """
    if raw_url is None or not isinstance(raw_url, str):
        raise MissingUrlError()

    url = raw_url.strip()
    if not url:
        raise MissingUrlError()

    match = _SCHEME_RE.match(url)
    if match:
        scheme = match.group(1).lower()
        if scheme not in ALLOWED_SCHEMES:
            raise InvalidUrlError(url, f"Unsupported URL scheme: {match.group(1)}")
        url = f"{scheme}://{url[match.end():]}"
    else:
        url = f"{DEFAULT_SCHEME}://{url}"

    _validate(url)
    return url


def _validate(url: str):
    if any(ch.isspace() for ch in url):
        raise InvalidUrlError(url)

    try:
        parts = urlsplit(url)
        # Accessing port validates it
        parts.port
    except ValueError as e:
        raise InvalidUrlError(url, f"Invalid URL {url!r}: {e}") from e

    hostname = parts.hostname
    if not hostname or not hostname.strip("."):
        raise InvalidUrlError(url)

    if any(ch in _INVALID_HOST_CHARS for ch in hostname):
        raise InvalidUrlError(url)

    if ".." in hostname or hostname.startswith(("-", ".")):
        raise InvalidUrlError(url)
