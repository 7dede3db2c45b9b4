"""Prometheus metrics helpers and middleware."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Optional

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from longform_providers.base import ProviderResponse


_HTTP_REQUEST_COUNT = Counter(
    "longform_http_requests_total",
    "Total HTTP requests processed by service",
    labelnames=("service", "method", "route", "status"),
)

_HTTP_REQUEST_LATENCY = Histogram(
    "longform_http_request_duration_seconds",
    "Latency of HTTP requests",
    labelnames=("service", "method", "route"),
)

_SUMMARY_TIER_DURATION = Histogram(
    "longform_summary_tier_duration_seconds",
    "Duration of a summary tier from context assembly to upsert",
    labelnames=("service", "tier"),
)

_SUMMARY_TIER_RUNS = Counter(
    "longform_summary_tier_runs_total",
    "Summary tier evaluations by outcome",
    labelnames=("service", "tier", "status"),
)

_STRUCTURED_PARSE = Counter(
    "longform_structured_parse_total",
    "Structured output recovery attempts by content kind and outcome",
    labelnames=("service", "kind", "status"),
)

_LLM_TOKENS = Counter(
    "longform_llm_tokens_total",
    "Token usage by provider and operation",
    labelnames=("service", "operation", "provider", "token_type"),
)

_LLM_COST = Counter(
    "longform_llm_cost_usd_total",
    "Aggregated LLM cost in USD",
    labelnames=("service", "operation", "provider"),
)

_LLM_LATENCY = Histogram(
    "longform_llm_latency_seconds",
    "Latency of LLM provider calls",
    labelnames=("service", "operation", "provider"),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect request metrics for FastAPI services."""

    def __init__(self, app: FastAPI, service_name: str) -> None:
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start = perf_counter()
        response = await call_next(request)
        elapsed = perf_counter() - start

        route_template = request.url.path
        route = request.scope.get("route")
        if route and getattr(route, "path", None):
            route_template = route.path  # type: ignore[assignment]

        method = request.method
        status = getattr(response, "status_code", 500)

        _HTTP_REQUEST_COUNT.labels(self.service_name, method, route_template, str(status)).inc()
        _HTTP_REQUEST_LATENCY.labels(self.service_name, method, route_template).observe(elapsed)
        return response


def setup_fastapi_metrics(app: FastAPI, service_name: str, endpoint: str = "/metrics") -> None:
    """Register Prometheus middleware and metrics endpoint for a FastAPI app."""

    if getattr(app.state, "metrics_configured", False):
        return

    app.add_middleware(PrometheusMiddleware, service_name=service_name)

    @app.get(endpoint, include_in_schema=False)
    async def _metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.state.metrics_configured = True


def observe_summary_tier(
    tier: str,
    duration_seconds: float,
    *,
    service_name: str,
    status: str = "success",
) -> None:
    """Record duration and outcome of one summary tier evaluation.

    ``status`` is one of ``success``, ``empty``, ``skipped``, ``cancelled`` or
    ``error``.
    """

    _SUMMARY_TIER_DURATION.labels(service_name, tier).observe(max(duration_seconds, 0.0))
    _SUMMARY_TIER_RUNS.labels(service_name, tier, status).inc()


def observe_structured_parse(kind: str, *, service_name: str, status: str) -> None:
    _STRUCTURED_PARSE.labels(service_name, kind, status).inc()


def observe_provider_response(
    *,
    operation: str,
    provider: str,
    service_name: str,
    response: Optional["ProviderResponse"],
) -> None:
    """Capture token usage, latency, and cost from provider responses."""

    if response is None:
        return

    prompt_tokens = getattr(response, "prompt_tokens", None)
    if isinstance(prompt_tokens, (int, float)) and prompt_tokens >= 0:
        _LLM_TOKENS.labels(service_name, operation, provider, "prompt").inc(prompt_tokens)

    completion_tokens = getattr(response, "completion_tokens", None)
    if isinstance(completion_tokens, (int, float)) and completion_tokens >= 0:
        _LLM_TOKENS.labels(service_name, operation, provider, "completion").inc(completion_tokens)

    latency_ms = getattr(response, "latency_ms", None)
    if isinstance(latency_ms, (int, float)) and latency_ms >= 0:
        _LLM_LATENCY.labels(service_name, operation, provider).observe(latency_ms / 1000)

    cost_usd = getattr(response, "cost_usd", None)
    if isinstance(cost_usd, (int, float)) and cost_usd >= 0:
        _LLM_COST.labels(service_name, operation, provider).inc(cost_usd)
