"""API endpoints for the prompt optimization pipeline.

Provides:
  - POST /optimize — optimize + generate (ExecutionResult)
  - POST /optimize/preview — optimize only, no primary generation (OptimizationResult)

Both are rate-limited per caller IP with a fixed window.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from promptrepeat.core.config import settings
from promptrepeat.core.dependencies import get_client_ip, get_prompt_engine, get_rate_limiter
from promptrepeat.core.exceptions import ExecutionFailedError, RateLimitExceededError
from promptrepeat.core.metrics import PIPELINE_RUNS, RATE_LIMIT_REJECTIONS
from promptrepeat.core.rate_limit import FixedWindowRateLimiter, RateLimitResult
from promptrepeat.engine.pipeline import PromptEngine
from promptrepeat.schemas.optimize import ExecutionResponse, OptimizationResponse, OptimizeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/optimize", tags=["optimize"])

GENERIC_FAILURE_DETAIL = "Optimization failed. Please try again."


async def _enforce_rate_limit(
    limiter: FixedWindowRateLimiter,
    scope: str,
    client_ip: str,
    response: Response,
) -> RateLimitResult:
    result = await limiter.check(
        f"{scope}:{client_ip}",
        limit=settings.optimize_rate_limit,
        window_seconds=settings.optimize_rate_window_seconds,
    )
    if not result.allowed:
        RATE_LIMIT_REJECTIONS.labels(scope=scope).inc()
        logger.info(
            "Rate limit hit: scope=%s client=%s retry_in=%ds",
            scope,
            client_ip,
            result.reset_in_seconds,
            extra={"client_key": client_ip},
        )
        raise RateLimitExceededError(limit=result.limit, reset_in_seconds=result.reset_in_seconds)

    response.headers.update(result.headers())
    return result


@router.post("", response_model=ExecutionResponse)
async def optimize_and_execute(
    body: OptimizeRequest,
    response: Response,
    engine: PromptEngine = Depends(get_prompt_engine),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    client_ip: str = Depends(get_client_ip),
):
    """Optimize the prompt, run it against the model and score the answer."""
    await _enforce_rate_limit(limiter, "optimize", client_ip, response)

    options = body.to_options()
    try:
        result = await engine.execute(body.prompt, options)
    except ExecutionFailedError as e:
        logger.error(
            "Optimization failed (mode=%s, stage=%s): %s",
            options.mode.value,
            e.stage,
            e,
            extra={"client_key": client_ip, "mode": options.mode.value, "stage": e.stage},
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=GENERIC_FAILURE_DETAIL) from e

    return ExecutionResponse.model_validate(result, from_attributes=True)


@router.post("/preview", response_model=OptimizationResponse)
async def preview_optimization(
    body: OptimizeRequest,
    response: Response,
    engine: PromptEngine = Depends(get_prompt_engine),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    client_ip: str = Depends(get_client_ip),
):
    """Return the optimized prompt without generating an answer."""
    await _enforce_rate_limit(limiter, "optimize-preview", client_ip, response)

    options = body.to_options()
    result = await engine.optimize(body.prompt, options)
    PIPELINE_RUNS.labels(operation="optimize", mode=options.mode.value, status="success").inc()

    return OptimizationResponse.model_validate(result, from_attributes=True)
