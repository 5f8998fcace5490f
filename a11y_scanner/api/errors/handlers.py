"""
Global exception handlers for FastAPI.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from a11y_scanner.api.errors.exceptions import APIException
from a11y_scanner.core.sentry_config import capture_exception

logger = logging.getLogger(__name__)


class ErrorResponse:
    """Standardized error response format."""

    @staticmethod
    def create(
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None,
        request_id: Optional[str] = None
    ) -> dict:
        """
        Create error response body.

        Details are merged into the top level so clients read e.g.
        ``retryAfter`` next to ``error``.

        Args:
            message: Human-readable error message
            code: Error code
            details: Additional error fields
            request_id: Request ID for tracking

        Returns:
            Error response dictionary
        """
        body = {
            "error": message,
            "code": code,
            "requestId": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            body.update(details)
        return body


def _request_id(request: Request, exc: Optional[APIException] = None) -> Optional[str]:
    if exc is not None and exc.request_id:
        return exc.request_id
    return getattr(request.state, "request_id", None)


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """
    Handle custom API exceptions.

    Args:
        request: FastAPI request
        exc: API exception

    Returns:
        JSON error response
    """
    request_id = _request_id(request, exc)

    logger.warning(
        f"API exception: {exc.code} ({exc.status_code}) {exc.message}",
        extra={"request_id": request_id, "code": exc.code, "details": exc.details}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(
            message=exc.message,
            code=exc.code,
            details=exc.details,
            request_id=request_id
        ),
        headers=exc.headers
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTP exceptions.

    Args:
        request: FastAPI request
        exc: HTTP exception

    Returns:
        JSON error response
    """
    request_id = _request_id(request)

    logger.warning(
        f"HTTP exception: {exc.status_code}",
        extra={"request_id": request_id, "detail": exc.detail}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(
            message=str(exc.detail),
            code=f"HTTP_{exc.status_code}",
            request_id=request_id
        ),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors (malformed JSON, wrong field types).

    Args:
        request: FastAPI request
        exc: Validation error

    Returns:
        JSON error response
    """
    request_id = _request_id(request)

    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        "Request validation failed",
        extra={"request_id": request_id, "errors": errors}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse.create(
            message="Invalid request body. Send JSON like { \"url\": \"https://example.com\" }",
            code="VALIDATION_ERROR",
            details={"errors": errors},
            request_id=request_id
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Exception

    Returns:
        JSON error response
    """
    request_id = _request_id(request)

    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc)
        }
    )
    capture_exception(exc, tags={"request_id": request_id or "unknown"})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse.create(
            message="Failed to scan website. Please try again later.",
            code="INTERNAL_SERVER_ERROR",
            request_id=request_id
        )
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
