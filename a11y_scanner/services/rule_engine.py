"""
axe-core injection and execution inside a browser session.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from a11y_scanner.core.config import ScanConfig
from a11y_scanner.models.scan import AuditResult
from a11y_scanner.services.browser_session import BrowserSession
from a11y_scanner.services.errors import RuleEngineExecutionError, RuleEngineLoadError

logger = logging.getLogger(__name__)

AXE_PRESENT_JS = "() => typeof window.axe !== 'undefined' && typeof window.axe.run === 'function'"

# axe.run returns a promise when called without a callback
AXE_RUN_JS = """
async (options) => {
    const results = await window.axe.run(document, options);
    return {
        violations: results.violations,
        passes: results.passes,
        incomplete: results.incomplete
    };
}
"""


class RuleEngineRunner:
    """
    Loads axe-core into the page and runs it scoped to WCAG 2.1 AA tags.
    """

    def __init__(self, config: ScanConfig):
        """
        Initialize runner.

        Args:
            config: Scan configuration (script source, tags, timeouts)
        """
        self.script_url = config.axe_script_url
        self.script_path: Optional[Path] = (
            Path(config.axe_script_path) if config.axe_script_path else None
        )
        self.rule_tags: List[str] = list(config.rule_tags)
        self.script_load_timeout_s = config.script_load_timeout_ms / 1000
        self.audit_timeout_s = config.audit_timeout_ms / 1000

    @property
    def run_options(self) -> Dict[str, Any]:
        return {"runOnly": {"type": "tag", "values": self.rule_tags}}

    async def run_audit(self, session: BrowserSession) -> AuditResult:
        """
        Ensure axe-core is loaded and run it against the current page.

        Args:
            session: Browser session with a navigated page

        Returns:
            AuditResult with violations, passes and incomplete checks

        Raises:
            RuleEngineLoadError: Script failed to load or timed out
            RuleEngineExecutionError: axe.run rejected or timed out
        """
        page = session.page

        if await self._is_loaded(page):
            logger.debug("axe-core already present in page")
        else:
            await self._inject(page)

        logger.info(f"Running axe-core with tags {self.rule_tags}")
        try:
            payload = await asyncio.wait_for(
                page.evaluate(AXE_RUN_JS, self.run_options),
                timeout=self.audit_timeout_s
            )
        except asyncio.TimeoutError as e:
            raise RuleEngineExecutionError(
                f"axe-core run timed out after {self.audit_timeout_s}s"
            ) from e
        except PlaywrightError as e:
            raise RuleEngineExecutionError(f"axe-core run failed: {e}") from e

        if not isinstance(payload, dict):
            raise RuleEngineExecutionError(
                f"Unexpected axe-core result type: {type(payload).__name__}"
            )

        try:
            result = AuditResult.from_engine_payload(payload)
        except ValueError as e:
            raise RuleEngineExecutionError(f"Malformed axe-core result: {e}") from e

        logger.info(
            f"axe-core finished: {len(result.violations)} violations, "
            f"{len(result.passes)} passes, {len(result.incomplete)} incomplete"
        )
        return result

    async def _is_loaded(self, page) -> bool:
        try:
            return bool(await page.evaluate(AXE_PRESENT_JS))
        except PlaywrightError as e:
            logger.warning(f"Could not check for axe-core in page: {e}")
            return False

    async def _inject(self, page):
        """Add the axe-core script tag, bounded by the script load timeout."""
        if self.script_path is not None:
            source = str(self.script_path)
            add_script = page.add_script_tag(path=source)
        else:
            source = self.script_url
            add_script = page.add_script_tag(url=source)

        logger.info(f"Injecting axe-core from {source}")
        try:
            await asyncio.wait_for(add_script, timeout=self.script_load_timeout_s)
        except asyncio.TimeoutError as e:
            raise RuleEngineLoadError(
                f"axe-core script loading timed out after {self.script_load_timeout_s}s"
            ) from e
        except (PlaywrightError, OSError) as e:
            raise RuleEngineLoadError(f"Failed to load axe-core from {source}: {e}") from e

        if not await self._is_loaded(page):
            raise RuleEngineLoadError(f"axe-core not available after loading {source}")
