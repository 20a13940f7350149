"""Prometheus metrics for the application."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from promptrepeat import __version__

# --- Metrics ---

APP_INFO = Info("app", "PromptRepeat application info")
APP_INFO.info({"version": __version__, "name": "promptrepeat"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60],
)

PIPELINE_RUNS = Counter(
    "pipeline_runs_total",
    "Optimize/execute pipeline runs",
    ["operation", "mode", "status"],
)

LLM_CALLS = Counter(
    "llm_calls_total",
    "Backend generation calls by pipeline stage",
    ["stage", "status"],
)

RATE_LIMIT_REJECTIONS = Counter(
    "rate_limit_rejections_total",
    "Requests rejected by the fixed-window rate limiter",
    ["scope"],
)

OPTIMIZE_LATENCY = Histogram(
    "pipeline_optimize_latency_seconds",
    "Wall-clock duration of the optimize stage",
    ["mode"],
    buckets=[0.001, 0.01, 0.1, 0.5, 1, 2.5, 5, 10, 30],
)


# --- Middleware ---


def _route_label(request: Request) -> str:
    """Label by route template so unknown paths do not create new series."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        method = request.method
        path = _route_label(request)

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
