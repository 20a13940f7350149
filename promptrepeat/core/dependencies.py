from fastapi import Request

from promptrepeat.core.rate_limit import FixedWindowRateLimiter
from promptrepeat.engine.pipeline import PromptEngine


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_prompt_engine(request: Request) -> PromptEngine:
    return request.app.state.prompt_engine


def get_client_ip(request: Request) -> str:
    """Caller identity for rate limiting: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip()
    if ip:
        return ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
