"""Exception types shared by the pipeline and the HTTP layer."""

from __future__ import annotations

from fastapi import HTTPException, status


class PipelineError(Exception):
    """Base class for failures that abort an optimize/execute request."""


class UnsupportedModeError(PipelineError, ValueError):
    """Raised when a repetition mode outside the known variants is requested."""

    def __init__(self, mode: object):
        super().__init__(f"Unsupported repetition mode: {mode!r}")
        self.mode = mode


class ExecutionFailedError(PipelineError):
    """The primary generation call(s) failed; the request cannot produce an answer."""

    def __init__(self, message: str, stage: str = "execution"):
        super().__init__(message)
        self.stage = stage


class RateLimitExceededError(HTTPException):
    """HTTP 429 carrying retry-after guidance derived from the limiter window."""

    def __init__(self, limit: int, reset_in_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many requests. Please try again in {reset_in_seconds} seconds.",
            headers={
                "Retry-After": str(reset_in_seconds),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset_in_seconds),
            },
        )
        self.limit = limit
        self.reset_in_seconds = reset_in_seconds
