"""
Gemini text generation client.
"""

import asyncio
import logging
from typing import Optional

from google import genai

from a11y_scanner.core.config import EnrichmentConfig

logger = logging.getLogger(__name__)


class TextGenerationError(Exception):
    """Text generation call failed or returned nothing usable."""


class TextGenerationUnavailable(TextGenerationError):
    """No credential configured, so no call is attempted."""


class GeminiTextClient:
    """Thin async wrapper over the google-genai client with a per-call timeout."""

    def __init__(self, config: EnrichmentConfig, client: Optional[genai.Client] = None):
        """
        Initialize client.

        Args:
            config: Enrichment configuration
            client: Pre-built genai client (built lazily from the API key otherwise)
        """
        self.model = config.model
        self.timeout_seconds = config.timeout_seconds
        self._api_key = config.api_key if config.is_configured else None
        self._client = client

        if not self.available:
            logger.warning("Gemini API key not configured, enrichment will use fallback text")

    @property
    def available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise TextGenerationUnavailable("Gemini API key not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """
        Generate text for ``prompt``.

        Raises:
            TextGenerationUnavailable: No credential configured
            TextGenerationError: Call failed, timed out or returned empty text
        """
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.models.generate_content,
                    model=self.model,
                    contents=prompt,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TextGenerationError(
                f"Gemini request timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise TextGenerationError(f"Gemini request failed: {e}") from e

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise TextGenerationError("Gemini returned an empty response")
        return text.strip()
