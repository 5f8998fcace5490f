"""
Metrics middleware for automatic API request tracking.
"""

import time
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from a11y_scanner.api.monitoring.metrics import record_api_request

logger = logging.getLogger(__name__)

UNTRACKED_PATHS = ('/health', '/metrics')


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Track request count by endpoint, method and status, and request latency
    by endpoint.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            record_api_request(
                endpoint=request.url.path,
                method=request.method,
                status_code=500,
                latency_seconds=time.perf_counter() - start_time
            )
            raise

        if not request.url.path.startswith(UNTRACKED_PATHS):
            record_api_request(
                endpoint=request.url.path,
                method=request.method,
                status_code=response.status_code,
                latency_seconds=time.perf_counter() - start_time
            )

        return response
