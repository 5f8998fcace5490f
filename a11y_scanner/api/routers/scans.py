"""
Scan endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field

from a11y_scanner.api.errors.exceptions import MethodNotAllowedException, to_api_exception
from a11y_scanner.api.monitoring.metrics import (
    record_rate_limit_rejection,
    record_scan_finished,
    record_scan_started,
)
from a11y_scanner.services.errors import RateLimitedError, ScanError
from a11y_scanner.services.scan_service import ScanContext, ScanService

logger = logging.getLogger(__name__)

router = APIRouter()

USAGE_HINT = "Use POST method with { url: '...' }"


class ScanRequest(BaseModel):
    """Scan request body."""
    url: Optional[str] = Field(default=None, description="Website URL to audit")


def get_scan_service(request: Request) -> ScanService:
    """Dependency to get the scan service from app state."""
    return request.app.state.scan_service


def get_client_identity(request: Request) -> str:
    """
    Admission key for the caller.

    Uses the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer address.
    """
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        first_hop = forwarded_for.split(',')[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    real_ip = request.headers.get('x-real-ip')
    if real_ip and real_ip.strip():
        return f"ip:{real_ip.strip()}"

    if request.client and request.client.host:
        return f"ip:{request.client.host}"
    return "ip:unknown"


@router.post(
    "/scan",
    status_code=status.HTTP_200_OK,
    summary="Scan a website for accessibility violations",
    description="Audit a URL against WCAG 2.0/2.1 AA rules and explain each violation"
)
async def create_scan(
    request: Request,
    response: Response,
    body: Optional[ScanRequest] = None,
    scan_service: ScanService = Depends(get_scan_service)
):
    """
    Run a full accessibility scan.

    Status codes:
    - 200: Scan completed
    - 400: URL missing or malformed
    - 429: Too many scans from this client
    - 500: Scan failed
    """
    ctx = ScanContext(
        raw_url=body.url if body else None,
        client_identity=get_client_identity(request),
        request_id=getattr(request.state, 'request_id', None)
    )

    outcome = 'internal_error'
    record_scan_started()
    try:
        report = await scan_service.scan(ctx.raw_url, ctx.client_identity, context=ctx)
        outcome = 'completed'
    except ScanError as e:
        outcome = e.kind.value
        if isinstance(e, RateLimitedError):
            record_rate_limit_rejection()
        raise to_api_exception(e, ctx.request_id) from e
    finally:
        record_scan_finished(
            outcome,
            ctx.elapsed_ms() / 1000,
            navigation_state=ctx.navigation_state.value,
            enrichment_fallbacks=ctx.enrichment_fallbacks
        )

    if ctx.admission is not None:
        response.headers['X-RateLimit-Limit'] = str(ctx.admission.limit)
        response.headers['X-RateLimit-Remaining'] = str(ctx.admission.remaining)

    return report.to_response()


@router.get("/scan", include_in_schema=False)
async def scan_wrong_method():
    """Scans are only started with POST."""
    raise MethodNotAllowedException(USAGE_HINT, allow="POST")
