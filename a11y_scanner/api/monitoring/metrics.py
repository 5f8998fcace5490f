"""
Prometheus metrics for monitoring and observability.

Scan, admission, enrichment and API request metrics live in a custom
registry exposed by ``GET /metrics``.
"""

import logging
import re
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST
)

logger = logging.getLogger(__name__)

metrics_registry = CollectorRegistry()

# ============================================================================
# Scan Metrics
# ============================================================================

scan_counter = Counter(
    'a11y_scans_total',
    'Total number of scans by outcome',
    ['outcome'],
    registry=metrics_registry
)

scan_duration_histogram = Histogram(
    'a11y_scan_duration_seconds',
    'Scan duration in seconds',
    ['outcome'],
    buckets=(1, 5, 10, 20, 30, 45, 60, 90, 120, 180),
    registry=metrics_registry
)

active_scans_gauge = Gauge(
    'a11y_active_scans',
    'Number of scans currently in progress',
    registry=metrics_registry
)

navigation_counter = Counter(
    'a11y_navigation_total',
    'Navigation results by final navigation state',
    ['state'],
    registry=metrics_registry
)

# ============================================================================
# Admission and Enrichment Metrics
# ============================================================================

rate_limit_rejections_counter = Counter(
    'a11y_rate_limit_rejections_total',
    'Scan requests rejected by the admission controller',
    registry=metrics_registry
)

enrichment_fallback_counter = Counter(
    'a11y_enrichment_fallbacks_total',
    'Enrichment texts replaced by fallback text',
    registry=metrics_registry
)

# ============================================================================
# API Metrics
# ============================================================================

api_request_counter = Counter(
    'a11y_api_requests_total',
    'Total API requests by endpoint, method, and status',
    ['endpoint', 'method', 'status'],
    registry=metrics_registry
)

api_latency_histogram = Histogram(
    'a11y_api_latency_seconds',
    'API request latency in seconds',
    ['endpoint'],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0),
    registry=metrics_registry
)

# ============================================================================
# Helper Functions
# ============================================================================

def record_scan_started():
    """Record that a scan has been accepted for processing."""
    try:
        active_scans_gauge.inc()
    except Exception as e:
        logger.error(f"Failed to record scan start metric: {e}")


def record_scan_finished(
    outcome: str,
    duration_seconds: float,
    navigation_state: Optional[str] = None,
    enrichment_fallbacks: int = 0
):
    """
    Record the end of a scan.

    Args:
        outcome: ``completed`` or the error kind the scan failed with
        duration_seconds: Wall-clock duration of the scan
        navigation_state: Final navigation state, when navigation was attempted
        enrichment_fallbacks: Number of enrichment texts that used fallback text
    """
    try:
        active_scans_gauge.dec()
        scan_counter.labels(outcome=outcome).inc()
        scan_duration_histogram.labels(outcome=outcome).observe(duration_seconds)
        if navigation_state and navigation_state != 'not_started':
            navigation_counter.labels(state=navigation_state).inc()
        if enrichment_fallbacks:
            enrichment_fallback_counter.inc(enrichment_fallbacks)
        logger.debug(f"Recorded scan finish: outcome={outcome}, duration={duration_seconds:.3f}s")
    except Exception as e:
        logger.error(f"Failed to record scan finish metric: {e}")


def record_rate_limit_rejection():
    """Record an admission rejection."""
    try:
        rate_limit_rejections_counter.inc()
    except Exception as e:
        logger.error(f"Failed to record rate limit metric: {e}")


def record_api_request(endpoint: str, method: str, status_code: int, latency_seconds: float):
    """
    Record an API request.

    Args:
        endpoint: The API endpoint path (e.g., '/scan')
        method: HTTP method (GET, POST, etc.)
        status_code: HTTP status code
        latency_seconds: Request latency in seconds
    """
    try:
        normalized_endpoint = _normalize_endpoint(endpoint)

        api_request_counter.labels(
            endpoint=normalized_endpoint,
            method=method,
            status=str(status_code)
        ).inc()

        api_latency_histogram.labels(endpoint=normalized_endpoint).observe(latency_seconds)
    except Exception as e:
        logger.error(f"Failed to record API request metric: {e}")


def _normalize_endpoint(endpoint: str) -> str:
    """
    Strip query parameters and trailing slashes to keep label cardinality low.
    """
    endpoint = endpoint.split('?')[0]
    endpoint = re.sub(r'/+$', '', endpoint)
    return endpoint or '/'


def get_metrics_text() -> bytes:
    """
    Get Prometheus metrics in text format.

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(metrics_registry)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
