# dit/observability/metrics.py
# minimal prometheus instrumentation

from __future__ import annotations

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import Counter, Gauge, Histogram, CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware


REQUEST_COUNT = Counter(
    "dit_request_count",
    "Total request count",
    labelnames=("method", "path", "status"),
)
REQUEST_LATENCY = Histogram(
    "dit_request_latency_seconds",
    "Request latency in seconds",
)
REQUEST_IN_PROGRESS = Gauge(
    "dit_request_in_progress",
    "Requests currently in progress",
    ("method",),
)
SESSIONS_CREATED = Counter(
    "dit_sessions_created_total",
    "Sessions issued by access-code redemption",
)
RATE_LIMITED = Counter(
    "dit_rate_limited_total",
    "Requests rejected by the rate limiter",
    labelnames=("rule",),
)
LIKE_TOGGLES = Counter(
    "dit_like_toggles_total",
    "Like toggles by resulting action",
    labelnames=("action",),
)
CHAT_RELAY_ERRORS = Counter(
    "dit_chat_relay_errors_total",
    "Chat relay failures by relay and kind",
    labelnames=("relay", "kind"),
)


def _route_path(request: Request) -> str:
    # Use the route template to keep label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests and observe latency for every HTTP request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        REQUEST_IN_PROGRESS.labels(request.method).inc()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            REQUEST_IN_PROGRESS.labels(request.method).dec()
            REQUEST_LATENCY.observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(request.method, _route_path(request), str(status)).inc()


router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    """// expose /metrics"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
