import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promptrepeat import __version__
from promptrepeat.api.v1.router import api_v1_router
from promptrepeat.core.config import settings, validate_settings_for_production
from promptrepeat.core.logging import setup_logging
from promptrepeat.core.metrics import PrometheusMiddleware, metrics_response
from promptrepeat.core.rate_limit import FixedWindowRateLimiter
from promptrepeat.core.sentry import init_sentry
from promptrepeat.engine.pipeline import PromptEngine
from promptrepeat.gateway.backend import GeminiBackend
from promptrepeat.schemas.optimize import HealthResponse

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    init_sentry()
    logger.info("Starting PromptRepeat (env=%s, model=%s)...", settings.app_env, settings.default_model)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set, generation calls will fail")

    app.state.rate_limiter.start_sweeper()

    yield

    # Shutdown
    await app.state.rate_limiter.stop_sweeper()
    logger.info("PromptRepeat shut down")


app = FastAPI(
    title="PromptRepeat",
    description="Prompt optimization middleware that counteracts instruction drift",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)

# One limiter and one engine per process; handlers reach them via dependencies
app.state.rate_limiter = FixedWindowRateLimiter(sweep_interval=settings.rate_limit_sweep_interval_seconds)
app.state.prompt_engine = PromptEngine(
    GeminiBackend(
        api_key=settings.gemini_api_key,
        timeout=settings.llm_timeout_seconds,
        temperature=settings.llm_temperature,
        max_output_tokens=settings.llm_max_output_tokens,
        api_url_template=settings.gemini_api_url,
    )
)


# Log unhandled exceptions with their traceback
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.add_middleware(PrometheusMiddleware)

# CORS — parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health", response_model=HealthResponse)
async def health(request: Request):
    engine: PromptEngine = request.app.state.prompt_engine
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    return {
        "status": "ok",
        "default_model": engine.default_model,
        "backend_configured": bool(settings.gemini_api_key),
        "rate_limiter": limiter.get_stats(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
