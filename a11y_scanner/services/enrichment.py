"""
AI explanations, executive summary and improvement plan for scan results.

Every call has its own fallback text, so a failing or unconfigured text
generation service never fails a scan.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from a11y_scanner.models.scan import ScanStats, Violation
from a11y_scanner.services.llm_client import GeminiTextClient, TextGenerationUnavailable

logger = logging.getLogger(__name__)

WAI_INDEX_URL = "https://www.w3.org/WAI/"
NO_VIOLATIONS_SUMMARY = "Great! No accessibility violations found. Your website is accessible."
FALLBACK_PLAN = (
    "Create a prioritized plan to fix issues starting with critical severity items, "
    "then serious, then moderate issues."
)
SUMMARY_DIGEST_SIZE = 5

EXPLAIN_PROMPT = """You are an expert web accessibility consultant. A website has an accessibility violation that needs to be fixed.

Rule ID: {id}
Severity: {impact}
Description: {description}
Help: {help}

Affected HTML:
{html}

Please provide:
1. A brief explanation of why this is an accessibility issue
2. Who is affected (e.g., screen reader users, keyboard users, users with low vision)
3. Specific steps to fix this issue with code examples
4. Best practices to prevent this issue in the future

Format your response in clear, actionable paragraphs."""

SUMMARY_PROMPT = """Provide a brief executive summary (2-3 sentences) of these web accessibility issues found on a website:

{digest}

The summary should help developers understand the priority and impact of these issues."""

PLAN_PROMPT = """Create a prioritized improvement plan for a website with these accessibility issues:
- Critical issues: {critical}
- Serious issues: {serious}
- Moderate issues: {moderate}
- Minor issues: {minor}

Provide a plan in 3-4 bullet points that covers:
1. Quick wins (easy fixes with high impact)
2. Medium-term improvements (moderate effort, significant impact)
3. Long-term strategy (comprehensive accessibility approach)

Be practical and actionable for a developer team."""


def fallback_explanation(violation: Violation) -> str:
    return f"{violation.help}\n\nFor more details, visit: {violation.help_url or WAI_INDEX_URL}"


def fallback_summary(violations: Sequence[Violation]) -> str:
    return (
        f"Found {len(violations)} accessibility issues that need to be addressed "
        f"for WCAG compliance."
    )


@dataclass(frozen=True)
class EnrichmentResult:
    """Enriched violations plus the aggregate texts."""
    violations: List[Violation]
    summary: str
    improvement_plan: str
    fallbacks: int = 0


class ExplanationService:
    """Requests explanations, a summary and a plan from the text generator."""

    def __init__(self, text_client: GeminiTextClient, max_concurrent_requests: int = 5):
        """
        Initialize service.

        Args:
            text_client: Text generation client
            max_concurrent_requests: Upper bound on in-flight generation calls
        """
        self.text_client = text_client
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)

    async def _generate(self, prompt: str, label: str) -> Optional[str]:
        """Call the generator, returning None on any failure."""
        if not self.text_client.available:
            return None
        try:
            async with self._semaphore:
                return await self.text_client.generate(prompt)
        except TextGenerationUnavailable:
            return None
        except Exception as e:
            logger.warning(f"Text generation failed for {label}, using fallback: {e}")
            return None

    async def _explanation_text(self, violation: Violation) -> Optional[str]:
        html = violation.nodes[0].html if violation.nodes and violation.nodes[0].html else "No HTML provided"
        prompt = EXPLAIN_PROMPT.format(
            id=violation.id,
            impact=violation.impact.value if violation.impact else "unknown",
            description=violation.description,
            help=violation.help,
            html=html,
        )
        return await self._generate(prompt, f"violation {violation.id}")

    async def _summary_text(self, violations: Sequence[Violation]) -> Optional[str]:
        digest = "\n".join(
            f"- {v.id} ({v.impact.value if v.impact else 'unknown'}): {v.description}"
            for v in violations[:SUMMARY_DIGEST_SIZE]
        )
        return await self._generate(SUMMARY_PROMPT.format(digest=digest), "summary")

    async def _plan_text(self, violations: Sequence[Violation]) -> Optional[str]:
        stats = ScanStats.from_violations(list(violations))
        prompt = PLAN_PROMPT.format(
            critical=stats.critical,
            serious=stats.serious,
            moderate=stats.moderate,
            minor=stats.minor,
        )
        return await self._generate(prompt, "improvement plan")

    async def explain(self, violation: Violation) -> str:
        """Explain one violation, falling back to its help text and URL."""
        text = await self._explanation_text(violation)
        return text if text is not None else fallback_explanation(violation)

    async def summarize(self, violations: Sequence[Violation]) -> str:
        """Executive summary of the top violations."""
        if not violations:
            return NO_VIOLATIONS_SUMMARY
        text = await self._summary_text(violations)
        return text if text is not None else fallback_summary(violations)

    async def plan(self, violations: Sequence[Violation]) -> str:
        """Prioritized improvement plan from impact counts."""
        text = await self._plan_text(violations)
        return text if text is not None else FALLBACK_PLAN

    async def enrich(self, violations: Sequence[Violation]) -> EnrichmentResult:
        """
        Run every explanation plus the summary and plan concurrently.

        Args:
            violations: Final violation list from the rule engine

        Returns:
            EnrichmentResult with each violation carrying ``ai_explanation``
        """
        violations = list(violations)
        explanations, summary, improvement_plan = await asyncio.gather(
            asyncio.gather(*(self._explanation_text(v) for v in violations), return_exceptions=True),
            self._summary_text(violations) if violations else _fixed(NO_VIOLATIONS_SUMMARY),
            self._plan_text(violations),
        )

        fallbacks = 0
        enriched = []
        for violation, explanation in zip(violations, explanations):
            if isinstance(explanation, Exception):
                logger.warning(f"Explanation for {violation.id} failed, using fallback: {explanation}")
                explanation = None
            if explanation is None:
                fallbacks += 1
                explanation = fallback_explanation(violation)
            enriched.append(violation.model_copy(update={"ai_explanation": explanation}))
        if summary is None:
            fallbacks += 1
            summary = fallback_summary(violations)
        if improvement_plan is None:
            fallbacks += 1
            improvement_plan = FALLBACK_PLAN

        return EnrichmentResult(
            violations=enriched,
            summary=summary,
            improvement_plan=improvement_plan,
            fallbacks=fallbacks,
        )


async def _fixed(text: str) -> str:
    return text
