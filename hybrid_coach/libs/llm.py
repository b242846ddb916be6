"""
LLM Client - Abstraction over the Gemini generative-language API.

The coach sends one request per user turn: a system instruction plus the
whole conversation, and gets back a single text blob.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from hybrid_coach import config

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_TEXT = "I apologize, I could not generate a response."


class LLMError(RuntimeError):
    """The generative API call failed; the message is safe to log."""


@dataclass
class Turn:
    """One conversation turn in wire form (role is ``user`` or ``model``)."""
    role: str
    text: str


class LLMClient(ABC):
    """
    Abstract LLM client interface.

    Implementations:
    - GeminiClient: Production Gemini API (google-genai)
    - test doubles in tests/conftest.py
    """

    @abstractmethod
    def generate(self, system_instruction: str, conversation: List[Turn]) -> str:
        """Return the response text for the conversation, or raise LLMError."""


class GeminiClient(LLMClient):
    """Production client using the google-genai SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = config.COACH_MODEL,
        temperature: float = config.COACH_TEMPERATURE,
        max_output_tokens: int = config.COACH_MAX_OUTPUT_TOKENS,
        timeout_ms: int = config.COACH_LLM_TIMEOUT_MS,
    ):
        self.api_key = api_key or config.GEMINI_API_KEY
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_ms = timeout_ms
        self._client = None

    def _get_client(self):
        """Lazy initialization of the SDK client."""
        if self._client is None:
            if not self.api_key:
                raise LLMError("GEMINI_API_KEY is not configured")
            from google import genai
            from google.genai import types

            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=self.timeout_ms),
            )
            logger.info("Gemini client initialized: model=%s", self.model)
        return self._client

    def generate(self, system_instruction: str, conversation: List[Turn]) -> str:
        from google.genai import types

        client = self._get_client()
        contents = [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in conversation
        ]
        generation_config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

        try:
            response = client.models.generate_content(
                model=self.model,
                contents=contents,
                config=generation_config,
            )
        except Exception as e:
            logger.error("LLM completion failed: %s", e)
            raise LLMError(str(e) or "API error") from e

        text = collect_text(response)
        logger.debug("LLM response length: %d chars", len(text))
        return text or EMPTY_RESPONSE_TEXT


def collect_text(response: Any) -> str:
    """Extract the first candidate's text from a generate_content response."""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        candidate = candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None:
            logger.debug("Finish reason: %s", finish_reason)
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        texts = [part.text for part in parts if getattr(part, "text", None)]
        if texts:
            return "".join(texts)
    return getattr(response, "text", None) or ""
