from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from officehub.core.settings import settings

logger = logging.getLogger(__name__)


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def _install_sqlite_pragmas(engine: Engine, busy_timeout_seconds: int) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_seconds * 1000)}")
        cursor.close()


def build_engine(url: str) -> Engine:
    engine_kwargs = {
        "pool_pre_ping": True,
        "future": True,
    }

    if is_sqlite_url(url):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds,
        }
    else:
        engine_kwargs.update(
            {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_timeout": settings.db_pool_timeout,
                "pool_recycle": settings.db_pool_recycle,
            }
        )

    engine = create_engine(url, **engine_kwargs)
    if is_sqlite_url(url):
        _install_sqlite_pragmas(engine, settings.sqlite_busy_timeout_seconds)
    return engine


def create_engine_with_fallback(url: str, fallback_url: str) -> Engine:
    """Build the primary engine; fall back to SQLite if PostgreSQL is unreachable."""
    engine = build_engine(url)
    if is_sqlite_url(url):
        return engine
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except OperationalError as exc:
        logger.warning(
            "primary database unreachable, falling back to SQLite: %s",
            exc.__class__.__name__,
        )
        engine.dispose()
        return build_engine(fallback_url)
    return engine


engine = create_engine_with_fallback(settings.database_url, settings.sqlite_fallback_url)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    class_=Session,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        # Drops staged audit rows and realtime events along with the failed write.
        db.rollback()
        raise
    finally:
        db.close()
