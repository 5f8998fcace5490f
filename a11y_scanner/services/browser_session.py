"""
Ephemeral Playwright browser sessions, one per scan.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, List, Optional
from uuid import uuid4

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
)
from playwright_stealth import Stealth

from a11y_scanner.core.config import ScanConfig
from a11y_scanner.models.scan import NavigationFailureReason, NavigationState
from a11y_scanner.services.errors import BrowserLaunchError, NavigationFailed
from a11y_scanner.services.wait_strategies import (
    NavigationTier,
    build_navigation_tiers,
    classify_navigation_error,
)

logger = logging.getLogger(__name__)


@dataclass
class NavigationAttempt:
    """Record of one navigation tier attempt."""
    tier: NavigationTier
    outcome: str  # success, timeout, error
    error: Optional[str] = None


@dataclass(frozen=True)
class NavigationOutcome:
    """Result of a successful navigation."""
    url: str
    state: NavigationState
    tier: NavigationTier
    attempts: List[NavigationAttempt] = field(default_factory=list)


class BrowserSession:
    """One live headless browser bound to a single page."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page
    ):
        self.session_id = uuid4().hex[:12]
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.page = page
        self.created_at = time.monotonic()
        self.navigation_state = NavigationState.NOT_STARTED
        self.tier_used: Optional[NavigationTier] = None
        self.attempts: List[NavigationAttempt] = []
        self.closed = False

    def age_seconds(self) -> float:
        """Get age of the session in seconds."""
        return time.monotonic() - self.created_at


class BrowserSessionManager:
    """
    Launches, navigates and tears down browser sessions.

    Sessions are never pooled: each scan pays the launch cost so no page
    state leaks from one scan into the next. ``session()`` is the only way
    the orchestrator acquires one, and it always closes what it opened.
    """

    def __init__(
        self,
        config: ScanConfig,
        playwright_factory: Callable[[], Any] = async_playwright,
        stealth: Optional[Stealth] = None
    ):
        """
        Initialize session manager.

        Args:
            config: Scan configuration (viewport, timeouts, launch args)
            playwright_factory: Returns an object whose ``start()`` yields a
                Playwright instance
            stealth: Stealth patcher applied to each context; built from
                config when not given
        """
        self.config = config
        self.tiers = build_navigation_tiers(config.navigation_timeouts())
        self._playwright_factory = playwright_factory
        if stealth is None and config.stealth:
            stealth = Stealth()
        self._stealth = stealth
        self._semaphore = asyncio.Semaphore(config.max_concurrent_scans)
        self.active_sessions = 0

        logger.info(
            "BrowserSessionManager initialized: tiers="
            + ", ".join(f"{t.strategy.value}/{t.timeout_ms}ms" for t in self.tiers)
        )

    async def open(self) -> BrowserSession:
        """
        Launch a headless browser with a configured page.

        Returns:
            BrowserSession

        Raises:
            BrowserLaunchError: Browser could not start within the launch timeout
        """
        handles = {}
        timeout_s = self.config.browser_launch_timeout_ms / 1000

        try:
            session = await asyncio.wait_for(self._launch(handles), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            logger.error(f"Browser launch timed out after {timeout_s}s")
            await self._dispose(handles)
            raise BrowserLaunchError(f"Browser launch timed out after {timeout_s}s") from e
        except Exception as e:
            logger.error(f"Browser launch failed: {e}", exc_info=True)
            await self._dispose(handles)
            raise BrowserLaunchError(f"Browser launch failed: {e}") from e

        self.active_sessions += 1
        logger.info(f"Browser session {session.session_id} opened")
        return session

    async def _launch(self, handles: dict) -> BrowserSession:
        handles['playwright'] = await self._playwright_factory().start()
        handles['browser'] = await handles['playwright'].chromium.launch(
            headless=self.config.headless,
            args=self.config.browser_args,
            timeout=self.config.browser_launch_timeout_ms
        )
        context = await handles['browser'].new_context(
            user_agent=self.config.user_agent,
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height
            }
        )
        if self._stealth is not None:
            await self._stealth.apply_stealth_async(context)
        page = await context.new_page()

        return BrowserSession(handles['playwright'], handles['browser'], context, page)

    async def _dispose(self, handles: dict):
        """Release whatever a failed launch managed to start."""
        browser = handles.get('browser')
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"Failed to close partially launched browser: {e}")
        playwright = handles.get('playwright')
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning(f"Failed to stop Playwright after launch failure: {e}")

    async def navigate(self, session: BrowserSession, url: str) -> NavigationOutcome:
        """
        Load ``url`` using the fallback cascade.

        Each tier is tried only when the previous one timed out. Any other
        navigation error (DNS, refused connection) ends the cascade at once.

        Args:
            session: Open browser session
            url: Normalized URL

        Returns:
            NavigationOutcome naming the tier that succeeded

        Raises:
            NavigationFailed: Every tier timed out or a navigation error occurred
        """
        last_timeout: Optional[PlaywrightTimeoutError] = None

        for tier in self.tiers:
            logger.info(
                f"Navigating to {url} (tier {tier.index}: {tier.strategy.value}, "
                f"timeout {tier.timeout_ms}ms)"
            )
            try:
                await session.page.goto(
                    url,
                    wait_until=tier.strategy.value,
                    timeout=tier.timeout_ms
                )
            except PlaywrightTimeoutError as e:
                last_timeout = e
                session.attempts.append(NavigationAttempt(tier, "timeout", str(e)))
                logger.warning(
                    f"Tier {tier.index} ({tier.strategy.value}) timed out for {url}, falling back"
                )
                continue
            except PlaywrightError as e:
                reason = classify_navigation_error(e)
                session.attempts.append(NavigationAttempt(tier, "error", str(e)))
                session.navigation_state = NavigationState.FAILED
                logger.error(f"Navigation to {url} failed ({reason.value}): {e}")
                raise NavigationFailed(url, reason, f"Navigation to {url} failed: {e}") from e

            session.attempts.append(NavigationAttempt(tier, "success"))
            session.tier_used = tier
            if tier.index == 1:
                session.navigation_state = NavigationState.LOADED
            else:
                session.navigation_state = NavigationState.PARTIALLY_LOADED
            logger.info(f"Page loaded via {tier.strategy.value} ({session.navigation_state.value})")
            return NavigationOutcome(
                url=url,
                state=session.navigation_state,
                tier=tier,
                attempts=list(session.attempts)
            )

        session.navigation_state = NavigationState.FAILED
        logger.error(f"All navigation attempts failed for {url}")
        raise NavigationFailed(
            url,
            NavigationFailureReason.TIMEOUT,
            f"All {len(self.tiers)} navigation tiers timed out for {url}"
        ) from last_timeout

    async def close(self, session: BrowserSession):
        """
        Close the browser and stop Playwright. Failures are logged, not raised.

        Args:
            session: Session to close
        """
        if session.closed:
            logger.warning(f"Browser session {session.session_id} already closed")
            return
        session.closed = True
        self.active_sessions -= 1

        try:
            await session.browser.close()
        except Exception as e:
            logger.error(f"Failed to close browser for session {session.session_id}: {e}")

        try:
            await session.playwright.stop()
        except Exception as e:
            logger.warning(f"Failed to stop Playwright for session {session.session_id}: {e}")

        logger.info(
            f"Browser session {session.session_id} closed after {session.age_seconds():.1f}s"
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """
        Open a session and close it on every exit path.

        Yields:
            BrowserSession
        """
        async with self._semaphore:
            session = await self.open()
            try:
                yield session
            finally:
                await self.close(session)
