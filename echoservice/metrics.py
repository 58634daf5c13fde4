from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response as StarletteResponse

# Cardinality kept low by labelling with route templates, not raw paths
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency (seconds)",
    ["method", "path", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

WATCHDOG_PROBES_TOTAL = Counter(
    "watchdog_probes_total",
    "Watchdog self-probes by outcome",
    ["outcome"],
)

WATCHDOG_NOTIFICATIONS_TOTAL = Counter(
    "watchdog_notifications_total",
    "WATCHDOG=1 notifications sent to the supervisor",
)


def _path_template(request: Request) -> str:
    """
    Return the route path template (e.g. '/hello/{name}').
    Falls back to the raw path if the template is unavailable.
    """
    route = request.scope.get("route")
    if route and getattr(route, "path", None):
        return route.path
    return request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request count and latency per (method, path template, status)."""

    def __init__(self, app, skip_predicate: Callable[[Request], bool] | None = None):
        super().__init__(app)
        self._skip = skip_predicate or (lambda req: False)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> StarletteResponse:
        if self._skip(request):
            return await call_next(request)

        start = time.time()
        response = await call_next(request)

        # route is only resolved once the inner app has run
        method = request.method
        path = _path_template(request)
        status = str(response.status_code)
        HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status=status).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path, status=status).observe(
            time.time() - start
        )
        return response


def metrics_endpoint() -> Response:
    """Return the Prometheus metrics exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
