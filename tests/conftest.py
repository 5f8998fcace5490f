"""
Shared fixtures and in-process fakes.

The fakes mirror the slice of the Playwright async API the scanner uses,
so no browser or network is needed.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest

os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_FORMAT', 'console')

from a11y_scanner.core.config import EnrichmentConfig, ScanConfig
from a11y_scanner.services.browser_session import BrowserSessionManager
from a11y_scanner.services.enrichment import ExplanationService
from a11y_scanner.services.llm_client import TextGenerationError
from a11y_scanner.services.rate_limiter import RateLimiter
from a11y_scanner.services.rule_engine import AXE_PRESENT_JS, RuleEngineRunner
from a11y_scanner.services.scan_service import ScanService


def make_violation(rule_id: str, impact: Optional[str], **extra) -> Dict[str, Any]:
    """Violation dict shaped like axe-core output."""
    record = {
        "id": rule_id,
        "impact": impact,
        "description": f"{rule_id} description",
        "help": f"{rule_id} help",
        "helpUrl": f"https://dequeuniversity.com/rules/axe/4.7/{rule_id}",
        "tags": ["wcag2aa"],
        "nodes": [{"html": f"<div id='{rule_id}'></div>", "target": [f"#{rule_id}"]}],
    }
    record.update(extra)
    return record


class FakePage:
    """Page double: ``goto`` replays scripted outcomes, ``evaluate`` answers axe calls."""

    def __init__(
        self,
        goto_outcomes: Optional[List[Optional[BaseException]]] = None,
        axe_present: bool = False,
        axe_payload: Any = None,
        evaluate_error: Optional[BaseException] = None,
        evaluate_delay: float = 0,
        add_script_error: Optional[BaseException] = None,
        add_script_delay: float = 0,
        script_defines_axe: bool = True
    ):
        self.goto_outcomes = list(goto_outcomes or [])
        self.goto_calls: List[Dict[str, Any]] = []
        self.axe_present = axe_present
        self.axe_payload = axe_payload if axe_payload is not None else {
            "violations": [], "passes": [], "incomplete": []
        }
        self.evaluate_error = evaluate_error
        self.evaluate_delay = evaluate_delay
        self.add_script_error = add_script_error
        self.add_script_delay = add_script_delay
        self.script_defines_axe = script_defines_axe
        self.script_tags: List[Dict[str, Any]] = []
        self.run_options: List[Any] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_outcomes:
            outcome = self.goto_outcomes.pop(0)
            if outcome is not None:
                raise outcome
        return None

    async def add_script_tag(self, url=None, path=None):
        self.script_tags.append({"url": url, "path": path})
        if self.add_script_delay:
            await asyncio.sleep(self.add_script_delay)
        if self.add_script_error is not None:
            raise self.add_script_error
        if self.script_defines_axe:
            self.axe_present = True

    async def evaluate(self, expression, arg=None):
        if expression == AXE_PRESENT_JS:
            return self.axe_present
        self.run_options.append(arg)
        if self.evaluate_delay:
            await asyncio.sleep(self.evaluate_delay)
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.axe_payload


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page

    async def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page: FakePage, close_error: Optional[BaseException] = None):
        self.page = page
        self.close_error = close_error
        self.close_calls = 0
        self.context_kwargs: Dict[str, Any] = {}

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return FakeContext(self.page)

    async def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[BaseException] = None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs: Dict[str, Any] = {}

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium: FakeChromium, stop_error: Optional[BaseException] = None):
        self.chromium = chromium
        self.stop_error = stop_error
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error


class FakePlaywrightFactory:
    """Stands in for ``async_playwright``; records how many sessions were started."""

    def __init__(
        self,
        page: Optional[FakePage] = None,
        launch_error: Optional[BaseException] = None,
        close_error: Optional[BaseException] = None,
        stop_error: Optional[BaseException] = None
    ):
        self.page = page or FakePage()
        self.browser = FakeBrowser(self.page, close_error=close_error)
        self.chromium = FakeChromium(self.browser, launch_error=launch_error)
        self.playwright = FakePlaywright(self.chromium, stop_error=stop_error)
        self.start_calls = 0

    def __call__(self):
        return self

    async def start(self):
        self.start_calls += 1
        return self.playwright


class FakeTextClient:
    """Text generation double with the GeminiTextClient surface."""

    def __init__(self, available: bool = True, fail: bool = False, reply: str = "generated text"):
        self.available = available
        self.fail = fail
        self.reply = reply
        self.model = "fake-model"
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise TextGenerationError("generation failed")
        return self.reply


@pytest.fixture
def scan_config() -> ScanConfig:
    """Scan configuration with stealth disabled and default tiers."""
    return ScanConfig(stealth=False)


@pytest.fixture
def enrichment_config() -> EnrichmentConfig:
    return EnrichmentConfig(api_key=None)


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def playwright_factory(fake_page: FakePage) -> FakePlaywrightFactory:
    return FakePlaywrightFactory(page=fake_page)


@pytest.fixture
def session_manager(scan_config, playwright_factory) -> BrowserSessionManager:
    return BrowserSessionManager(scan_config, playwright_factory=playwright_factory)


@pytest.fixture
def text_client() -> FakeTextClient:
    return FakeTextClient()


def build_scan_service(
    scan_config: ScanConfig,
    factory: FakePlaywrightFactory,
    text_client: Optional[FakeTextClient] = None,
    rate_limiter: Optional[RateLimiter] = None
) -> ScanService:
    """Scan service wired to fakes."""
    return ScanService(
        rate_limiter or RateLimiter(max_requests=10, window_seconds=60),
        BrowserSessionManager(scan_config, playwright_factory=factory),
        RuleEngineRunner(scan_config),
        ExplanationService(text_client or FakeTextClient(available=False)),
    )
