from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from officehub.core.errors import register_exception_handlers
from officehub.core.logging import RequestLoggingMiddleware, configure_logging
from officehub.core.observability import PrometheusMiddleware, metrics_endpoint
from officehub.core.settings import settings
from officehub.db.base import Base
from officehub.db.session import engine
from officehub.realtime.broadcaster import ConnectionManager
from officehub.routers import include_all_routers

import officehub.models  # noqa: F401  (register mappers on Base.metadata)

configure_logging(level=settings.log_level)
logger = logging.getLogger("officehub")

# Local dev servers pick arbitrary ports.
DEV_ORIGIN_REGEX = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"


def check_production_settings() -> None:
    if any(origin.strip() == "*" for origin in settings.allow_origins):
        raise RuntimeError("ALLOW_ORIGINS cannot include '*' in production")
    if settings.jwt_secret.startswith("change_me"):
        raise RuntimeError("JWT_SECRET must be set in production")
    if settings.auto_create_schema:
        logger.warning("AUTO_CREATE_SCHEMA is enabled in production; prefer alembic upgrade head")


if settings.is_production:
    check_production_settings()

app = FastAPI(title=settings.project_name, version=settings.project_version)
app.state.broadcaster = ConnectionManager()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_origin_regex=None if settings.is_production else DEV_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id", "Accept"],
)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["observability"], include_in_schema=False)

register_exception_handlers(app)
include_all_routers(app)


@app.get("/healthz", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz", tags=["health"])
def readiness() -> dict[str, str]:
    """Ready once the database answers and attachments can be written."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - runtime readiness check
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    try:
        marker = settings.ensure_uploads_dir() / ".readyz"
        marker.touch()
        marker.unlink()
    except OSError as exc:  # pragma: no cover - runtime readiness check
        raise HTTPException(status_code=503, detail="Uploads directory not writable") from exc
    return {"status": "ok", "database": engine.dialect.name}


@app.get("/version", tags=["health"])
def version() -> dict[str, str | None]:
    return {
        "version": settings.project_version,
        "git_sha": settings.git_sha,
        "environment": settings.environment,
    }


@app.on_event("startup")
async def startup_event() -> None:
    # Request handlers run in worker threads; pushes are scheduled onto this loop.
    app.state.broadcaster.bind_loop(asyncio.get_running_loop())
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
        logger.info("schema ensured on %s", engine.dialect.name)
