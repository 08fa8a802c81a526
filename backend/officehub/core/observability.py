"""
Prometheus instrumentation for the OfficeHub API.

HTTP traffic is labelled by route template (``/api/finance/assets/{asset_id}``)
rather than the raw path so record ids never become label values.
"""

from __future__ import annotations

import time

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

UNMATCHED_ROUTE = "unmatched"

http_requests_total = Counter(
    "http_server_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

http_request_duration_seconds = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

http_exceptions_total = Counter(
    "http_server_exceptions_total",
    "Unhandled exceptions raised while serving a request",
    ["method", "route", "exception_type"],
)

approval_decisions_total = Counter(
    "officehub_approval_decisions_total",
    "Approval decisions recorded on ledgers and assets",
    ["resource", "stage", "outcome"],
)

notifications_sent_total = Counter(
    "officehub_notifications_sent_total",
    "User-initiated notification sends by addressing mode",
    ["mode"],
)

realtime_events_total = Counter(
    "officehub_realtime_events_total",
    "Realtime events published",
    ["topic"],
)

realtime_delivery_failures_total = Counter(
    "officehub_realtime_delivery_failures_total",
    "Realtime pushes that failed to reach a connected socket",
    ["topic"],
)

realtime_connections = Gauge(
    "officehub_realtime_connections",
    "Currently open realtime sockets",
)


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            route = route_label(request)
            http_exceptions_total.labels(request.method, route, type(exc).__name__).inc()
            http_requests_total.labels(request.method, route, "500").inc()
            http_request_duration_seconds.labels(request.method, route).observe(time.perf_counter() - started)
            raise

        # The router fills in scope["route"] while handling, so read it afterwards.
        route = route_label(request)
        http_requests_total.labels(request.method, route, str(response.status_code)).inc()
        http_request_duration_seconds.labels(request.method, route).observe(time.perf_counter() - started)
        return response


async def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
