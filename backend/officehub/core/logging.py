from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from officehub.core.security import token_subject

# ``extra=`` keys copied onto the JSON line when a record carries them.
CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "path",
    "method",
    "status_code",
    "latency_ms",
    "topic",
    "event",
    "client",
)

# Health and metrics endpoints are hit every few seconds by the orchestrator.
QUIET_PATHS = frozenset({"/healthz", "/readyz", "/metrics"})


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update({key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)})
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    # Requests are logged by RequestLoggingMiddleware; passlib warns about bcrypt builds.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def request_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip() or None
    # File links and the realtime socket carry the token in the query string.
    return request.query_params.get("token") or None


def request_user_id(request: Request) -> Optional[int]:
    token = request_token(request)
    return token_subject(token) if token else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One structured line per request, plus a ``security`` line for 401/403 answers."""

    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.security_logger = logging.getLogger("security")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        context = {"request_id": request_id, "path": request.url.path, "method": request.method}
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            context["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
            context["user_id"] = request_user_id(request)
            self.logger.exception("unhandled_exception", extra=context)
            raise

        context["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
        context["status_code"] = response.status_code
        context["user_id"] = request_user_id(request)
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
        self.logger.log(level, "request", extra=context)

        if response.status_code in (401, 403):
            outcome = "unauthorized" if response.status_code == 401 else "forbidden"
            self.security_logger.info(outcome, extra=context)

        response.headers["X-Request-Id"] = request_id
        return response
