"""
Request context middleware for structured logging.

Binds a request id to the logging context for every request and echoes it
back in the ``X-Request-ID`` response header.
"""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from a11y_scanner.core.logging_config import bind_context, clear_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add request context to structured logs.

    Adds:
    - request_id: From the ``X-Request-ID`` header or a fresh UUID4
    - method: HTTP method
    - path: Request path
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and add context to logs.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            The response from the route handler
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            logger.info(
                "request_started",
                client_host=request.client.host if request.client else None,
                user_agent=request.headers.get('user-agent'),
            )

            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )

            return response

        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        finally:
            clear_context()
