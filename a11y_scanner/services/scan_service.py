"""
Scan orchestration: admission, URL validation, browser session, audit,
enrichment and result assembly.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from a11y_scanner.core.logging_config import bind_context, unbind_context
from a11y_scanner.core.sentry_config import capture_exception
from a11y_scanner.models.scan import (
    AuditResult,
    NavigationState,
    Performance,
    ScanReport,
    ScanState,
    ScanStats,
)
from a11y_scanner.services.browser_session import BrowserSessionManager
from a11y_scanner.services.enrichment import ExplanationService
from a11y_scanner.services.errors import (
    RateLimitedError,
    ScanError,
    ScanInternalError,
)
from a11y_scanner.services.rate_limiter import RateLimitDecision, RateLimiter
from a11y_scanner.services.rule_engine import RuleEngineRunner
from a11y_scanner.services.url_validation import normalize_url

logger = logging.getLogger(__name__)


class ScanContext:
    """Per-request bookkeeping carried through the state machine."""

    def __init__(self, raw_url: Optional[str], client_identity: str, request_id: Optional[str] = None):
        self.request_id = request_id or str(uuid4())
        self.raw_url = raw_url
        self.client_identity = client_identity
        self.url: Optional[str] = None
        self.state = ScanState.RECEIVED
        self.admission: Optional[RateLimitDecision] = None
        self.navigation_state = NavigationState.NOT_STARTED
        self.enrichment_fallbacks = 0
        self.started = time.perf_counter()

    def advance(self, state: ScanState):
        logger.debug(f"Scan {self.request_id}: {self.state.value} -> {state.value}")
        self.state = state

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


class ScanService:
    """
    Public entry point for scanning a website.

    A scan is rejected before any browser starts when admission or URL
    validation fails. Failures from session open through audit are
    classified into the ScanError taxonomy, and the session is closed
    before the error leaves this class. Enrichment never fails a scan.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        session_manager: BrowserSessionManager,
        rule_runner: RuleEngineRunner,
        explainer: ExplanationService
    ):
        """Initialize scan service."""
        self.rate_limiter = rate_limiter
        self.session_manager = session_manager
        self.rule_runner = rule_runner
        self.explainer = explainer

    async def scan(
        self,
        raw_url: Optional[str],
        client_identity: str,
        request_id: Optional[str] = None,
        context: Optional[ScanContext] = None
    ) -> ScanReport:
        """
        Scan ``raw_url`` for WCAG 2.1 AA violations.

        Args:
            raw_url: URL as submitted by the client
            client_identity: Admission key for the client
            request_id: Correlation id (generated when omitted)
            context: Pre-built context, lets callers read the admission
                decision and final state

        Returns:
            ScanReport

        Raises:
            ScanError: Any classified failure
        """
        ctx = context or ScanContext(raw_url, client_identity, request_id)
        bind_context(scan_request_id=ctx.request_id)
        try:
            return await self._run(ctx)
        except ScanError as e:
            ctx.advance(ScanState.FAILED)
            log = logger.warning if e.expected else logger.error
            log(
                f"Scan {ctx.request_id} failed ({e.kind.value}) after {ctx.elapsed_ms()}ms: {e.message}"
            )
            raise
        finally:
            unbind_context("scan_request_id")

    async def _run(self, ctx: ScanContext) -> ScanReport:
        ctx.admission = await self.rate_limiter.check_rate_limit(ctx.client_identity)
        if not ctx.admission.allowed:
            raise RateLimitedError(ctx.admission.retry_after, ctx.admission.limit)
        ctx.advance(ScanState.ADMITTED)

        ctx.url = normalize_url(ctx.raw_url)
        ctx.advance(ScanState.URL_VALIDATED)
        logger.info(f"Scan {ctx.request_id} starting for {ctx.url}")

        audit = await self._audit(ctx)

        enrichment = await self.explainer.enrich(audit.violations)
        ctx.enrichment_fallbacks = enrichment.fallbacks
        ctx.advance(ScanState.ENRICHED)

        report = ScanReport(
            request_id=ctx.request_id,
            url=ctx.url,
            violations=enrichment.violations,
            passes=audit.passes,
            incomplete=audit.incomplete,
            summary=enrichment.summary,
            improvement_plan=enrichment.improvement_plan,
            stats=ScanStats.from_violations(audit.violations),
            timestamp=datetime.now(timezone.utc),
            performance=Performance(duration=ctx.elapsed_ms()),
            navigation_state=ctx.navigation_state,
        )
        ctx.advance(ScanState.COMPLETED)
        logger.info(
            f"Scan {ctx.request_id} completed in {report.performance.duration}ms: "
            f"{report.stats.total} violations"
        )
        return report

    async def _audit(self, ctx: ScanContext) -> AuditResult:
        """Open a session, navigate and run the rule engine."""
        try:
            async with self.session_manager.session() as session:
                ctx.advance(ScanState.SESSION_OPEN)

                outcome = await self.session_manager.navigate(session, ctx.url)
                ctx.navigation_state = outcome.state
                ctx.advance(ScanState.NAVIGATED)

                audit = await self.rule_runner.run_audit(session)
                ctx.advance(ScanState.AUDIT_RUN)
                return audit
        except ScanError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during scan {ctx.request_id}: {e}")
            capture_exception(e, tags={"scan_state": ctx.state.value}, extras={"url": ctx.url})
            raise ScanInternalError(f"Unexpected error during scan: {e}") from e
