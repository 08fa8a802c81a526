"""Block until the configured database accepts connections (container entrypoint)."""

from __future__ import annotations

import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from officehub.core.logging import configure_logging
from officehub.core.settings import settings

logger = logging.getLogger("officehub.wait_for_db")


def wait_for_database(database_url: str, *, timeout: float, interval: float) -> int:
    """Poll with ``SELECT 1`` and return the number of attempts it took."""
    engine = create_engine(database_url, pool_pre_ping=True, future=True)
    deadline = time.monotonic() + timeout
    attempt = 0
    try:
        while True:
            attempt += 1
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                return attempt
            except SQLAlchemyError as exc:
                if time.monotonic() >= deadline:
                    raise SystemExit(f"Database not reachable within {timeout:g}s") from exc
                logger.warning("database not ready (%s), retrying in %ss", exc.__class__.__name__, interval)
                time.sleep(interval)
    finally:
        engine.dispose()


def main() -> None:
    configure_logging(level=settings.log_level)
    database_url = os.getenv("DATABASE_URL") or settings.database_url
    if database_url.startswith("sqlite"):
        logger.info("sqlite database configured, nothing to wait for")
        return
    attempts = wait_for_database(
        database_url,
        timeout=float(os.getenv("DB_WAIT_TIMEOUT", "30")),
        interval=float(os.getenv("DB_WAIT_INTERVAL", "2")),
    )
    logger.info("database reachable after %s attempt(s)", attempts)


if __name__ == "__main__":
    main()
