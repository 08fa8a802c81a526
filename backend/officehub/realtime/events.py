"""
Events staged on a session and published only after the transaction commits.

Services call :func:`queue_event` while they work; routers call
:func:`publish_pending` right after ``db.commit()``. A rollback discards
whatever was staged, so a failed write never produces a push.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import event
from sqlalchemy.orm import Session

from officehub.realtime.broadcaster import Broadcaster, PublishedEvent

logger = logging.getLogger("officehub.realtime")

_PENDING_KEY = "officehub.pending_events"


def queue_event(
    db: Session,
    topic: str,
    payload: Dict[str, Any],
    user_ids: Optional[Iterable[int]] = None,
) -> None:
    staged = db.info.setdefault(_PENDING_KEY, [])
    staged.append(
        PublishedEvent(
            topic=topic,
            payload=jsonable_encoder(payload),
            user_ids=None if user_ids is None else sorted(set(user_ids)),
        )
    )


def pending_events(db: Session) -> List[PublishedEvent]:
    return list(db.info.get(_PENDING_KEY, []))


def publish_pending(db: Session, broadcaster: Broadcaster) -> int:
    staged: List[PublishedEvent] = db.info.pop(_PENDING_KEY, [])
    for item in staged:
        if item.user_ids is not None and not item.user_ids:
            continue
        try:
            broadcaster.publish(item.topic, item.payload, item.user_ids)
        except Exception:
            logger.exception("realtime publish failed", extra={"topic": item.topic})
    return len(staged)


@event.listens_for(Session, "after_rollback")
def _discard_on_rollback(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
