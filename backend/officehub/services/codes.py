from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute

from officehub.core.errors import InternalError

MAX_ATTEMPTS = 10


def unique_code(db: Session, column: InstrumentedAttribute, factory: Callable[[int], str]) -> str:
    """Draw codes from ``factory(attempt)`` until one is unused in ``column``."""
    for attempt in range(MAX_ATTEMPTS):
        candidate = factory(attempt)
        exists = db.query(column).filter(column == candidate).first()
        if exists is None:
            return candidate
    raise InternalError(f"Could not allocate a unique {column.key}")


def client_code(attempt: int) -> str:
    now = datetime.now(timezone.utc)
    return f"CLT-{now:%Y%m%d}-{secrets.token_hex(2).upper()}"


def staff_code(attempt: int) -> str:
    return f"STF-{int(time.time() * 1000) % 1_000_000:06d}{secrets.randbelow(100):02d}"


def partner_code(attempt: int) -> str:
    return f"PTR-{int(time.time() * 1000) % 1_000_000:06d}{secrets.randbelow(100):02d}"


def asset_code(category: str) -> Callable[[int], str]:
    prefix = "".join(ch for ch in category.upper() if ch.isalnum())[:2] or "GN"

    def _factory(attempt: int) -> str:
        return f"A{int(time.time()) % 1_000_000:06d}-{prefix}-{attempt + 1:02d}"

    return _factory
