"""
Health checker service for system monitoring.
"""

import importlib.util
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from a11y_scanner import __version__
from a11y_scanner.services.browser_session import BrowserSessionManager
from a11y_scanner.services.llm_client import GeminiTextClient
from a11y_scanner.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ComponentHealth:
    """Health status for a component."""

    def __init__(self, status: str, message: Optional[str] = None, details: Optional[Dict] = None):
        self.status = status  # healthy, degraded, unhealthy
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {'status': self.status}
        if self.message:
            result['message'] = self.message
        if self.details:
            result['details'] = self.details
        return result


class HealthChecker:
    """Reports the state of the components a scan depends on."""

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        session_manager: Optional[BrowserSessionManager] = None,
        text_client: Optional[GeminiTextClient] = None
    ):
        self.rate_limiter = rate_limiter
        self.session_manager = session_manager
        self.text_client = text_client

    async def check_health(self) -> Dict[str, Any]:
        """
        Perform health check.

        Returns:
            Dictionary with overall status and component statuses
        """
        components = {
            'rate_limiter': self.check_rate_limiter().to_dict(),
            'browser': self.check_browser().to_dict(),
            'enrichment': self.check_enrichment().to_dict(),
        }

        return {
            'status': self._determine_overall_status(components),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': __version__,
            'components': components
        }

    def check_rate_limiter(self) -> ComponentHealth:
        if self.rate_limiter is None:
            return ComponentHealth('unhealthy', 'Rate limiter not configured')
        return ComponentHealth(
            'healthy',
            'In-memory rate limiter (single instance)',
            {
                'tracked_identities': self.rate_limiter.tracked_identities,
                'max_requests': self.rate_limiter.max_requests,
                'window_seconds': self.rate_limiter.window_seconds,
            }
        )

    def check_browser(self) -> ComponentHealth:
        """Check that the browser engine is importable; launching one is too expensive here."""
        if importlib.util.find_spec("playwright") is None:
            return ComponentHealth('unhealthy', 'Playwright not installed or not available')
        details = {}
        if self.session_manager is not None:
            details['active_sessions'] = self.session_manager.active_sessions
        return ComponentHealth('healthy', 'Browser engine available', details)

    def check_enrichment(self) -> ComponentHealth:
        if self.text_client is None or not self.text_client.available:
            return ComponentHealth(
                'degraded',
                'Text generation not configured, explanations use fallback text'
            )
        return ComponentHealth('healthy', 'Text generation configured', {'model': self.text_client.model})

    def _determine_overall_status(self, components: Dict[str, Dict]) -> str:
        """
        Overall status is the worst component status.
        """
        statuses = {component['status'] for component in components.values()}
        if 'unhealthy' in statuses:
            return 'unhealthy'
        if 'degraded' in statuses:
            return 'degraded'
        return 'healthy'
