"""
FastAPI application main entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from a11y_scanner import __version__
from a11y_scanner.api.errors.handlers import register_exception_handlers
from a11y_scanner.api.middleware.metrics import MetricsMiddleware
from a11y_scanner.api.middleware.request_context import RequestContextMiddleware
from a11y_scanner.api.routers import health, scans
from a11y_scanner.core.config import Config, get_config
from a11y_scanner.core.logging_config import configure_structlog
from a11y_scanner.core.sentry_config import init_sentry
from a11y_scanner.services.browser_session import BrowserSessionManager
from a11y_scanner.services.enrichment import ExplanationService
from a11y_scanner.services.health_checker import HealthChecker
from a11y_scanner.services.llm_client import GeminiTextClient
from a11y_scanner.services.rate_limiter import RateLimiter
from a11y_scanner.services.rule_engine import RuleEngineRunner
from a11y_scanner.services.scan_service import ScanService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    logger.info("Starting accessibility scanner API")
    app.state.rate_limiter.start()

    yield

    logger.info("Shutting down accessibility scanner API")
    await app.state.rate_limiter.stop()


def build_services(app: FastAPI, config: Config) -> None:
    """
    Construct the scan pipeline and attach it to ``app.state``.

    Args:
        app: FastAPI application instance
        config: Application configuration
    """
    rate_limiter = RateLimiter(
        max_requests=config.rate_limit.requests_per_minute,
        window_seconds=config.rate_limit.window_seconds,
        sweep_interval_seconds=config.rate_limit.sweep_interval_seconds
    )
    session_manager = BrowserSessionManager(config.scan)
    rule_runner = RuleEngineRunner(config.scan)
    text_client = GeminiTextClient(config.enrichment)
    explainer = ExplanationService(
        text_client,
        max_concurrent_requests=config.enrichment.max_concurrent_requests
    )

    app.state.rate_limiter = rate_limiter
    app.state.scan_service = ScanService(rate_limiter, session_manager, rule_runner, explainer)
    app.state.health_checker = HealthChecker(rate_limiter, session_manager, text_client)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        config: Configuration to use (defaults to the global configuration)

    Returns:
        Configured FastAPI application instance
    """
    config = config or get_config()

    configure_structlog(
        log_level=config.monitoring.log_level,
        json_logs=(config.monitoring.log_format == 'json'),
        development_mode=(config.environment == 'development')
    )

    if config.monitoring.sentry_dsn:
        init_sentry(
            dsn=config.monitoring.sentry_dsn,
            environment=config.environment,
            release=__version__,
            traces_sample_rate=0.1 if config.environment == 'production' else 1.0,
            enable_tracing=True
        )

    description = """
## Accessibility Scanner API

Audits a website against WCAG 2.0/2.1 AA rules in a headless browser and
explains every violation in plain language.

### Rate Limiting

Scans are limited per client. Successful responses carry:
- `X-RateLimit-Limit`: Maximum scans allowed per window
- `X-RateLimit-Remaining`: Scans remaining in the current window

Rejected requests return `429` with a `Retry-After` header.
    """

    app = FastAPI(
        title="Accessibility Scanner API",
        description=description,
        version=__version__,
        debug=config.debug,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Scans",
                "description": "Accessibility scans"
            },
            {
                "name": "Health",
                "description": "System health and monitoring"
            }
        ]
    )
    app.state.config = config
    build_services(app, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"]
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestContextMiddleware)
    if config.monitoring.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    app.include_router(scans.router, tags=["Scans"])
    app.include_router(health.router, tags=["Health"])

    register_exception_handlers(app)

    logger.info("FastAPI application created successfully")
    return app


app = create_app()
