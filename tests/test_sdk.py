"""Tests for the Python SDK client, run against the in-process app."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport

from promptrepeat.core.config import settings
from promptrepeat.core.dependencies import get_prompt_engine, get_rate_limiter
from promptrepeat.main import app
from promptrepeat.sdk import PromptRepeatClient, PromptRepeatError


@pytest.fixture
async def sdk(engine, rate_limiter) -> AsyncGenerator[PromptRepeatClient, None]:
    app.dependency_overrides[get_prompt_engine] = lambda: engine
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    async with PromptRepeatClient("test-key", base_url="http://test", transport=ASGITransport(app=app)) as client:
        yield client
    app.dependency_overrides.clear()


def _mock_client(handler) -> PromptRepeatClient:
    return PromptRepeatClient("test-key", base_url="http://test", transport=httpx.MockTransport(handler))


class TestOptimize:
    @pytest.mark.asyncio
    async def test_optimize_defaults(self, sdk, fake_backend):
        result = await sdk.optimize("Extract the dates")

        assert result["mode"] == "adaptive"
        assert result["taskType"] == "extraction"
        assert result["repetitionCount"] == 3
        assert result["output"] == "ANSWER"
        assert fake_backend.calls_of("generation")[0][1] == "gemini-3-flash-preview"

    @pytest.mark.asyncio
    async def test_optimize_with_flags(self, sdk, fake_backend):
        result = await sdk.optimize(
            "Summarize: X",
            mode="x2",
            model="gemini-2.5-pro",
            enable_latent_anchoring=True,
            enable_alignment=True,
        )

        assert result["anchorsApplied"] is True
        assert result["alignmentStatus"] == "passed"
        assert fake_backend.calls_of("generation")[0][1] == "gemini-2.5-pro"
        assert len(fake_backend.calls_of("alignment")) == 1

    @pytest.mark.asyncio
    async def test_preview(self, sdk, fake_backend):
        result = await sdk.preview("Summarize: X", mode="selective", segments=["Be brief"])

        assert result["optimizedPrompt"] == "Summarize: X\n\nREPEATED SEGMENTS:\nBe brief\n"
        assert fake_backend.calls_of("generation") == []

    @pytest.mark.asyncio
    async def test_unknown_flag_rejected(self, sdk):
        with pytest.raises(TypeError):
            await sdk.optimize("P", enable_magic=True)


class TestErrors:
    @pytest.mark.asyncio
    async def test_backend_failure_message(self, sdk, fake_backend):
        fake_backend.fail.add("generation")

        with pytest.raises(PromptRepeatError) as exc_info:
            await sdk.optimize("P", mode="x2")

        assert exc_info.value.status_code == 502
        assert str(exc_info.value) == "Optimization failed. Please try again."

    @pytest.mark.asyncio
    async def test_rate_limited_carries_retry_after(self, sdk, monkeypatch):
        monkeypatch.setattr(settings, "optimize_rate_limit", 1)
        await sdk.optimize("P", mode="x2")

        with pytest.raises(PromptRepeatError) as exc_info:
            await sdk.optimize("P", mode="x2")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after is not None
        assert str(exc_info.value).startswith("Too many requests.")

    @pytest.mark.asyncio
    async def test_non_json_error_uses_generic_message(self):
        async with _mock_client(lambda request: httpx.Response(500, text="<html>oops</html>")) as client:
            with pytest.raises(PromptRepeatError) as exc_info:
                await client.optimize("P")

        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Failed to optimize prompt"
        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    async def test_validation_error_uses_generic_message(self):
        body = {"detail": [{"loc": ["body", "prompt"], "msg": "Field required"}]}
        async with _mock_client(lambda request: httpx.Response(422, json=body)) as client:
            with pytest.raises(PromptRepeatError) as exc_info:
                await client.optimize("P")

        assert exc_info.value.status_code == 422
        assert str(exc_info.value) == "Failed to optimize prompt"


class TestRequestShape:
    @pytest.mark.asyncio
    async def test_headers_and_payload(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"output": "ok"})

        async with _mock_client(handler) as client:
            await client.optimize("P", segments=("a", "b"), enable_intent_expansion=True)

        request = seen[0]
        assert request.url.path == "/api/v1/optimize"
        assert request.headers["Authorization"] == "Bearer test-key"
        assert request.content and b'"enableIntentExpansion":true' in request.content.replace(b" ", b"")
        assert b'"segments":["a","b"]' in request.content.replace(b" ", b"")
