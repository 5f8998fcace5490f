"""
Sentry error tracking configuration.
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: str,
    environment: str = 'development',
    release: Optional[str] = None,
    traces_sample_rate: float = 0.1,
    enable_tracing: bool = True
) -> None:
    """
    Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN (Data Source Name)
        environment: Environment name (development, staging, production)
        release: Release version
        traces_sample_rate: Percentage of transactions to trace (0.0 to 1.0)
        enable_tracing: Whether to enable performance tracing
    """
    if not dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return

    try:
        logging_integration = LoggingIntegration(
            level=logging.INFO,
            event_level=logging.ERROR
        )

        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=release,
            traces_sample_rate=traces_sample_rate if enable_tracing else 0.0,
            integrations=[
                logging_integration,
                AsyncioIntegration(),
            ],
            send_default_pii=False,
            attach_stacktrace=True,
            max_breadcrumbs=50,
            before_send=before_send_filter,
        )

        logger.info(
            f"Sentry initialized successfully: environment={environment}, "
            f"traces_sample_rate={traces_sample_rate}"
        )

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def before_send_filter(event, hint):
    """
    Filter events before sending to Sentry.

    Client-side failures (bad URLs, unreachable sites) are expected traffic
    and are dropped. Forwarding headers and query-string credentials are
    scrubbed, and scan failures are grouped by error kind.
    """
    exc_info = hint.get('exc_info') if hint else None
    if exc_info:
        exc_value = exc_info[1]
        if getattr(exc_value, 'expected', False):
            return None
        kind = getattr(exc_value, 'kind', None)
        if kind is not None:
            event['fingerprint'] = ['scan-error', getattr(kind, 'value', str(kind))]

    if 'request' in event:
        headers = event['request'].get('headers', {})
        for header in ('X-Forwarded-For', 'X-Real-IP'):
            if header in headers:
                headers[header] = '[Filtered]'
        url = event['request'].get('url')
        if isinstance(url, str) and 'key=' in url:
            event['request']['url'] = url.split('?')[0]

    return event


def capture_exception(error: Exception, **kwargs) -> None:
    """
    Manually capture an exception.

    Args:
        error: The exception to capture
        **kwargs: Additional context (tags, extras)
    """
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in kwargs.get('tags', {}).items():
                scope.set_tag(key, value)

            for key, value in kwargs.get('extras', {}).items():
                scope.set_extra(key, value)

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.error(f"Failed to capture exception in Sentry: {e}")
