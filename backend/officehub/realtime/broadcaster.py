"""
Server-push fan-out for notifications and domain events.

Services never talk to sockets directly: they publish ``(topic, payload)``
through a :class:`Broadcaster`. Delivery is best effort. A push that fails is
logged and dropped; the persisted rows remain the source of truth for clients
that poll.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from fastapi import WebSocket

from officehub.core.observability import (
    realtime_connections,
    realtime_delivery_failures_total,
    realtime_events_total,
)

logger = logging.getLogger("officehub.realtime")


class Broadcaster(Protocol):
    def publish(self, topic: str, payload: Dict[str, Any], user_ids: Optional[Iterable[int]] = None) -> None:
        """Push ``payload`` under ``topic``; ``user_ids=None`` reaches every connection."""
        ...


class ConnectionManager:
    """
    WebSocket registry keyed by user id.

    Request handlers run in the threadpool, so ``publish`` hands the actual
    sends to the event loop bound at startup and returns immediately.
    """

    def __init__(self) -> None:
        self._connections: Dict[int, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(websocket)
        realtime_connections.inc()
        logger.debug("websocket connected user_id=%s", user_id)

    async def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(user_id)
            if not sockets or websocket not in sockets:
                return
            sockets.discard(websocket)
            if not sockets:
                del self._connections[user_id]
        realtime_connections.dec()
        logger.debug("websocket disconnected user_id=%s", user_id)

    def connected_user_ids(self) -> Set[int]:
        return set(self._connections)

    async def _targets(self, user_ids: Optional[Iterable[int]]) -> List[tuple[int, WebSocket]]:
        async with self._lock:
            if user_ids is None:
                wanted = list(self._connections)
            else:
                wanted = [uid for uid in set(user_ids) if uid in self._connections]
            return [(uid, ws) for uid in wanted for ws in self._connections.get(uid, ())]

    async def send(self, topic: str, payload: Dict[str, Any], user_ids: Optional[Iterable[int]] = None) -> None:
        message = {"event": topic, "data": payload}
        dead: List[tuple[int, WebSocket]] = []
        for user_id, websocket in await self._targets(user_ids):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                realtime_delivery_failures_total.labels(topic=topic).inc()
                logger.warning(
                    "realtime delivery failed user_id=%s: %s",
                    user_id,
                    exc.__class__.__name__,
                    extra={"topic": topic, "user_id": user_id},
                )
                dead.append((user_id, websocket))
        for user_id, websocket in dead:
            await self.disconnect(user_id, websocket)

    def publish(self, topic: str, payload: Dict[str, Any], user_ids: Optional[Iterable[int]] = None) -> None:
        realtime_events_total.labels(topic=topic).inc()
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("realtime loop not bound, dropping %s", topic, extra={"topic": topic})
            return
        targets = None if user_ids is None else list(user_ids)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            loop.create_task(self.send(topic, payload, targets))
        else:
            asyncio.run_coroutine_threadsafe(self.send(topic, payload, targets), loop)


@dataclass
class PublishedEvent:
    topic: str
    payload: Dict[str, Any]
    user_ids: Optional[List[int]] = None


@dataclass
class RecordingBroadcaster:
    """Keeps every published event in memory; used where no sockets exist."""

    events: List[PublishedEvent] = field(default_factory=list)

    def publish(self, topic: str, payload: Dict[str, Any], user_ids: Optional[Iterable[int]] = None) -> None:
        self.events.append(
            PublishedEvent(topic=topic, payload=payload, user_ids=None if user_ids is None else list(user_ids))
        )

    def topics(self) -> List[str]:
        return [event.topic for event in self.events]

    def for_topic(self, topic: str) -> List[PublishedEvent]:
        return [event for event in self.events if event.topic == topic]

    def clear(self) -> None:
        self.events.clear()
