"""
Gemini text-generation client.

Uses the Generative Language REST API (``models/{model}:generateContent``)
over httpx.  Every call is a single attempt: failures raise ``LLMError`` and
callers decide whether a deterministic fallback exists.

Public API
----------
GeminiClient.generate(prompt, *, max_tokens=None, temperature=None) -> str
GeminiClient.check_health()                                         -> bool
TextGenerator  - protocol implemented by GeminiClient and test doubles
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The upstream model call failed or returned nothing usable."""


class LLMConfigurationError(RuntimeError):
    """The model client cannot be built (e.g. missing API key)."""


class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        ...


class GeminiClient:
    """
    Thin async wrapper around Gemini ``generateContent``.

    No retries and no request-level cancellation beyond the httpx timeout.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        if not self.api_key:
            raise LLMConfigurationError("GEMINI_API_KEY is not set in environment variables")

        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(float(timeout or settings.GEMINI_TIMEOUT), connect=10.0)
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Send *prompt* and return the text of the first candidate.

        Raises:
            LLMError: on timeout, connection failure, non-200 status, or a
                response without any candidate text (e.g. safety block).
        """
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": (
                    temperature if temperature is not None else settings.GEMINI_TEMPERATURE
                ),
                "maxOutputTokens": max_tokens or settings.GEMINI_MAX_OUTPUT_TOKENS,
            },
        }

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    json=payload,
                    headers={"X-goog-api-key": self.api_key},
                )
        except httpx.TimeoutException as exc:
            logger.error("generate: request timed out after %.0f s", self.timeout.read or 0)
            raise LLMError("Gemini request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("generate: connection error - %s", exc)
            raise LLMError(f"Gemini request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "generate: Gemini returned HTTP %d: %s",
                resp.status_code,
                resp.text[:300],
            )
            raise LLMError(f"Gemini returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise LLMError("Gemini returned a non-JSON body") from exc

        text = self._extract_text(data)
        if not text:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            logger.warning("generate: empty candidate (block reason: %s)", reason)
            raise LLMError(
                f"Gemini returned no text{f' (blocked: {reason})' if reason else ''}"
            )
        return text

    async def check_health(self) -> bool:
        """Return True if the configured model endpoint is reachable.  Never raises."""
        try:
            async with self._client(timeout=httpx.Timeout(10.0)) as client:
                resp = await client.get(
                    f"{self.base_url}/models/{self.model}",
                    headers={"X-goog-api-key": self.api_key},
                )
            return resp.status_code == 200
        except Exception as exc:
            logger.error("Gemini health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _client(self, timeout: Optional[httpx.Timeout] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
