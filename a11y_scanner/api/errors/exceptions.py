"""
Custom exception classes for the API.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from a11y_scanner.services.errors import RateLimitedError, ScanError, ScanErrorKind


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.request_id = request_id
        super().__init__(status_code=status_code, detail=message, headers=headers)


class ValidationException(APIException):
    """Validation error exception."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", **kwargs):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code=code,
            message=message,
            **kwargs
        )


class MethodNotAllowedException(APIException):
    """Wrong HTTP method, with a usage hint."""

    def __init__(self, message: str, allow: str):
        super().__init__(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            code="METHOD_NOT_ALLOWED",
            message=message,
            headers={"Allow": allow}
        )


class RateLimitException(APIException):
    """Rate limit exceeded exception."""

    def __init__(self, retry_after: int, limit: Optional[int] = None, message: Optional[str] = None, **kwargs):
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Remaining": "0",
        }
        if limit is not None:
            headers["X-RateLimit-Limit"] = str(limit)
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            code="RATE_LIMIT_EXCEEDED",
            message=message or "Rate limit exceeded. Please try again later.",
            details={"retryAfter": retry_after},
            headers=headers,
            **kwargs
        )


class ScanException(APIException):
    """Scan-related exception."""

    def __init__(self, message: str, code: str = "SCAN_ERROR", **kwargs):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=code,
            message=message,
            **kwargs
        )


def to_api_exception(error: ScanError, request_id: Optional[str] = None) -> APIException:
    """
    Translate a domain scan error into the HTTP error it is reported as.

    Args:
        error: Classified scan failure
        request_id: Request correlation id

    Returns:
        APIException with status, code and user-facing message
    """
    code = error.kind.value.upper()

    if error.kind in (ScanErrorKind.MISSING_URL, ScanErrorKind.INVALID_URL):
        return ValidationException(error.user_message, code=code, request_id=request_id)

    if isinstance(error, RateLimitedError):
        return RateLimitException(
            error.retry_after,
            limit=error.limit,
            message=error.user_message,
            request_id=request_id
        )

    details = {}
    reason = error.details.get("reason")
    if reason:
        details["reason"] = reason
    return ScanException(error.user_message, code=code, details=details, request_id=request_id)
