"""
AI completion client (Google Gemini).

Sends a single prompt and returns the model's text. Any failure (network,
quota, timeout, empty answer) surfaces as CompletionError so the resolver can
substitute its apology message.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional
import logging

from google import genai

import settings

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """Raised when the AI service does not produce a usable answer."""


class GeminiClient:
    """Thin async wrapper over google-genai's generate_content."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY)
            model: Model name (defaults to GEMINI_MODEL)
            timeout: Per-call timeout in seconds
            client: Pre-built genai.Client, mostly for tests
        """
        self.model = model or settings.get_gemini_model()
        self.timeout = timeout if timeout is not None else settings.get_ai_timeout()
        self._client = client or genai.Client(api_key=api_key or settings.get_gemini_api_key())

    async def generate(self, prompt: str) -> str:
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(model=self.model, contents=prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CompletionError(f"Gemini call timed out after {self.timeout}s") from e
        except Exception as e:
            raise CompletionError(f"Gemini call failed: {e}") from e

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise CompletionError("Gemini returned an empty answer")
        return text.strip()
