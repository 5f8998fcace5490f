"""
Health check and monitoring endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from a11y_scanner.api.monitoring.metrics import get_metrics_content_type, get_metrics_text
from a11y_scanner.services.health_checker import HealthChecker

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str
    components: Dict[str, Dict[str, Any]]


def get_health_checker(request: Request) -> HealthChecker:
    """Dependency to get health checker from app state."""
    return request.app.state.health_checker


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check with component status",
    description="Check the health status of the API and all its components"
)
async def health_check(request: Request, response: Response):
    """
    Health check endpoint.

    Status codes:
    - 200: System is healthy or degraded (explanations use fallback text)
    - 503: System is unhealthy (scans cannot run)
    """
    health_status = await get_health_checker(request).check_health()

    if health_status['status'] == 'unhealthy':
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(**health_status)


@router.get(
    "/metrics",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Prometheus metrics",
    description="Get Prometheus metrics for monitoring and observability"
)
async def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Returns scan outcomes and durations, navigation states, admission
    rejections, enrichment fallbacks, and API request counts and latency.
    """
    return PlainTextResponse(
        content=get_metrics_text().decode('utf-8'),
        media_type=get_metrics_content_type()
    )
