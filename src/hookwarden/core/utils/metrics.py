"""
Prometheus metrics.

The public app records every request through ``track_metrics``; the internal
app exposes the registry at ``/metrics``.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS = Counter(
    "hookwarden_http_requests_total",
    "Total number of HTTP requests handled by the public listener",
    labelnames=["method", "path", "status"],
)

HTTP_REQUEST_LATENCY = Histogram(
    "hookwarden_http_request_duration_seconds",
    "HTTP request latency in seconds",
    labelnames=["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

WEBHOOK_EVENTS = Counter(
    "hookwarden_webhook_events_total",
    "Webhook events dispatched, by kind and outcome",
    labelnames=["kind", "outcome"],
)


def record_event(kind: str, outcome: str) -> None:
    WEBHOOK_EVENTS.labels(kind=kind, outcome=outcome).inc()


async def track_metrics(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """HTTP middleware recording request count and latency."""
    start = time.perf_counter()
    response = await call_next(request)
    # Label by route template, not raw path
    route = request.scope.get("route")
    path = getattr(route, "path", "unmatched")
    HTTP_REQUEST_LATENCY.labels(method=request.method, path=path).observe(time.perf_counter() - start)
    HTTP_REQUESTS.labels(method=request.method, path=path, status=str(response.status_code)).inc()
    return response


def create_metrics_app() -> FastAPI:
    """Internal application exposing the Prometheus registry."""
    app = FastAPI(title="hookwarden internal", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
