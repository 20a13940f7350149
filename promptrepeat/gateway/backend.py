"""LLM backend — the single "generate text from a prompt" capability.

The pipeline only needs ``generate(model, contents) -> str``. Everything
protocol-specific lives in the concrete backend:
  - Gemini: Google AI generateContent, finishReason SAFETY / promptFeedback
    blockReason → BackendError("SAFETY")

Every failure mode (HTTP error, 429, timeout, blocked content, missing key)
surfaces as ``BackendError``; callers decide whether that fails open or
fails the request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod

import httpx

from promptrepeat.core.metrics import LLM_CALLS

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the LLM backend cannot produce text for a prompt."""

    def __init__(self, message: str, status_code: int = 0, error_code: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class BaseLlmBackend(ABC):
    """Base class for LLM backends."""

    provider: str = ""

    @abstractmethod
    async def generate(self, model: str, contents: str) -> str:
        """Send ``contents`` to ``model`` and return the generated text."""
        ...


class GeminiBackend(BaseLlmBackend):
    """Google Gemini generateContent backend."""

    provider = "gemini"
    api_url_template = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
        api_url_template: str | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        if api_url_template:
            self.api_url_template = api_url_template

    async def generate(self, model: str, contents: str) -> str:
        if not self.api_key:
            raise BackendError("Gemini API key is not configured", error_code="NO_API_KEY")

        url = self.api_url_template.format(model=model)
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": contents}],
                }
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise BackendError(f"Gemini request timed out after {self.timeout}s", error_code="TIMEOUT") from e
        except httpx.HTTPError as e:
            raise BackendError(f"Gemini transport error: {e}", error_code="TRANSPORT") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if resp.status_code == 429:
            raise BackendError("Rate limited by Google AI", status_code=429, error_code="429")

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"Gemini HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
                error_code=str(resp.status_code),
            ) from e

        data = resp.json()
        candidates = data.get("candidates", [])
        if not candidates:
            block_reason = data.get("promptFeedback", {}).get("blockReason", "")
            if block_reason:
                raise BackendError(f"[CENSORED_BY_VENDOR] Prompt blocked: {block_reason}", error_code="SAFETY")
            raise BackendError("Gemini returned no candidates", error_code="EMPTY")

        candidate = candidates[0]
        if candidate.get("finishReason", "") == "SAFETY":
            raise BackendError("[CENSORED_BY_VENDOR] Gemini safety filter triggered", error_code="SAFETY")

        parts = candidate.get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in parts if "text" in p)

        logger.debug("Gemini %s responded in %dms (%d chars)", model, elapsed_ms, len(text))
        return text


async def generate_with_timeout(
    backend: BaseLlmBackend,
    model: str,
    contents: str,
    timeout: float,
    stage: str,
) -> str:
    """Call the backend with an upper bound on total latency.

    Exceeding ``timeout`` is reported as a BackendError like any other
    backend failure.
    """
    try:
        text = await asyncio.wait_for(backend.generate(model, contents), timeout=timeout)
    except asyncio.TimeoutError as e:
        LLM_CALLS.labels(stage=stage, status="timeout").inc()
        raise BackendError(f"{stage} call exceeded {timeout}s", error_code="TIMEOUT") from e
    except BackendError:
        LLM_CALLS.labels(stage=stage, status="error").inc()
        raise
    except Exception as e:
        LLM_CALLS.labels(stage=stage, status="error").inc()
        raise BackendError(f"{stage} call failed: {e}", error_code="UNEXPECTED") from e

    LLM_CALLS.labels(stage=stage, status="success").inc()
    return text
