from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from officehub.models.audit import ActivityLog

logger = logging.getLogger("officehub.audit")


def log_activity(
    db: Session,
    *,
    actor_user_id: Optional[int],
    activity_type: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    message: Optional[str] = None,
    payload: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Append an audit row in the caller's transaction; it is discarded with a rollback."""
    entry = ActivityLog(
        actor_user_id=actor_user_id,
        type=activity_type,
        entity_type=entity_type,
        entity_id=entity_id,
        message=message,
        # Amounts and dates arrive as Decimal/date; the JSON column needs plain values.
        payload_json=jsonable_encoder(payload) if payload else None,
    )
    db.add(entry)
    db.flush()
    logger.info(
        "%s %s#%s by user %s",
        activity_type,
        entity_type or "-",
        entity_id if entity_id is not None else "-",
        actor_user_id if actor_user_id is not None else "system",
        extra={"user_id": actor_user_id, "event": activity_type},
    )
    return entry
