"""PromptRepeat SDK (Python client).

Usage:
    async with PromptRepeatClient("your-api-key") as pr:
        result = await pr.optimize("Summarize this text...")
        print(result["output"], result["repetitionCount"])
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.promptrepeat.com"
DEFAULT_MODE = "adaptive"
DEFAULT_MODEL = "gemini-3-flash-preview"

# Python keyword arguments → wire names
_FLAG_NAMES = {
    "segments": "segments",
    "enable_alignment": "enableAlignment",
    "enable_intent_expansion": "enableIntentExpansion",
    "enable_entropy_monitoring": "enableEntropyMonitoring",
    "enable_latent_anchoring": "enableLatentAnchoring",
}


class PromptRepeatError(Exception):
    """Raised when the PromptRepeat API rejects a request."""

    def __init__(self, message: str, status_code: int = 0, retry_after: int | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class PromptRepeatClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> PromptRepeatClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _build_payload(prompt: str, mode: str, model: str, flags: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"prompt": prompt, "mode": mode, "model": model}
        for name, value in flags.items():
            if name not in _FLAG_NAMES:
                raise TypeError(f"Unknown option: {name}")
            if value is not None:
                payload[_FLAG_NAMES[name]] = list(value) if name == "segments" else value
        return payload

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        resp = await self._client.post(path, json=payload)
        if resp.is_success:
            return resp.json()

        message = "Failed to optimize prompt"
        try:
            body = resp.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        if isinstance(detail, str) and detail:
            message = detail

        retry_after = resp.headers.get("Retry-After")
        logger.debug("PromptRepeat API %s returned %d: %s", path, resp.status_code, message)
        raise PromptRepeatError(
            message,
            status_code=resp.status_code,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    async def optimize(
        self,
        prompt: str,
        mode: str = DEFAULT_MODE,
        model: str = DEFAULT_MODEL,
        **flags: Any,
    ) -> dict[str, Any]:
        """Optimize and execute ``prompt``; returns the ExecutionResult JSON."""
        return await self._post("/api/v1/optimize", self._build_payload(prompt, mode, model, flags))

    async def preview(
        self,
        prompt: str,
        mode: str = DEFAULT_MODE,
        model: str = DEFAULT_MODEL,
        **flags: Any,
    ) -> dict[str, Any]:
        """Return the optimized prompt without running it."""
        return await self._post("/api/v1/optimize/preview", self._build_payload(prompt, mode, model, flags))
