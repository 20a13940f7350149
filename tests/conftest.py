from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from promptrepeat.core.config import settings

# Override settings for tests
settings.gemini_api_key = ""
settings.app_env = "development"

from promptrepeat.core.dependencies import get_prompt_engine, get_rate_limiter  # noqa: E402
from promptrepeat.core.rate_limit import FixedWindowRateLimiter  # noqa: E402
from promptrepeat.engine.pipeline import PromptEngine  # noqa: E402
from promptrepeat.gateway.backend import BackendError, BaseLlmBackend  # noqa: E402
from promptrepeat.main import app  # noqa: E402

TEST_MODEL = "test-model"
AUX_MODEL = "aux-model"


class FakeBackend(BaseLlmBackend):
    """Scriptable backend that records every generate() call.

    Calls are routed by the instruction template they carry:
    classification / intent_expansion / alignment / generation.
    """

    provider = "fake"

    def __init__(
        self,
        classification: str = "extraction",
        expansion: str = "EXPANDED PROMPT",
        alignment: str = "passed",
        outputs: tuple[str, ...] = ("ANSWER",),
        fail: tuple[str, ...] = (),
    ):
        self.replies = {
            "classification": classification,
            "intent_expansion": expansion,
            "alignment": alignment,
        }
        self.outputs = list(outputs)
        self.fail = set(fail)
        self.calls: list[tuple[str, str, str]] = []  # (kind, model, contents)

    @staticmethod
    def kind_of(contents: str) -> str:
        if contents.startswith("Classify the following prompt"):
            return "classification"
        if contents.startswith("Analyze the user's intent"):
            return "intent_expansion"
        if contents.startswith("Analyze the following AI output"):
            return "alignment"
        return "generation"

    async def generate(self, model: str, contents: str) -> str:
        kind = self.kind_of(contents)
        self.calls.append((kind, model, contents))
        if kind in self.fail:
            raise BackendError(f"simulated {kind} failure", status_code=503, error_code="503")
        if kind == "generation":
            index = len(self.calls_of("generation")) - 1
            return self.outputs[min(index, len(self.outputs) - 1)]
        return self.replies[kind]

    def calls_of(self, kind: str) -> list[tuple[str, str, str]]:
        return [c for c in self.calls if c[0] == kind]


class SlowBackend(BaseLlmBackend):
    """Backend that never answers within a short timeout."""

    provider = "slow"

    def __init__(self, delay: float = 5.0):
        self.delay = delay

    async def generate(self, model: str, contents: str) -> str:
        await asyncio.sleep(self.delay)
        return "too late"


class FakeClock:
    """Manually advanced clock for rate limiter tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def engine(fake_backend: FakeBackend) -> PromptEngine:
    return PromptEngine(fake_backend, default_model=TEST_MODEL, auxiliary_model=AUX_MODEL, timeout=5.0)


@pytest.fixture
def rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter()


@pytest.fixture
async def client(engine: PromptEngine, rate_limiter: FixedWindowRateLimiter) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_prompt_engine] = lambda: engine
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
