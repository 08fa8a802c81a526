from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest
from fastapi import WebSocketDisconnect, status
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from officehub.core.security import issue_user_token
from officehub.realtime.broadcaster import ConnectionManager, RecordingBroadcaster
from officehub.realtime.events import pending_events, publish_pending, queue_event
from officehub.routers import realtime as realtime_router


class ExplodingBroadcaster:
    def __init__(self) -> None:
        self.calls = 0

    def publish(self, topic, payload, user_ids=None):
        self.calls += 1
        raise RuntimeError("socket gone")


def test_events_publish_after_commit(db):
    broadcaster = RecordingBroadcaster()
    queue_event(db, "ledger_updated", {"id": 1, "closing_balance": Decimal("12.50")}, user_ids=[3, 2, 3])
    queue_event(db, "notification_sent", {"id": 9})

    assert broadcaster.events == []
    db.commit()
    assert publish_pending(db, broadcaster) == 2

    first, second = broadcaster.events
    assert first.topic == "ledger_updated"
    assert first.user_ids == [2, 3]
    assert first.payload == {"id": 1, "closing_balance": 12.5}
    assert second.user_ids is None
    assert pending_events(db) == []


def test_rollback_discards_staged_events(db):
    broadcaster = RecordingBroadcaster()
    db.execute(text("SELECT 1"))
    queue_event(db, "asset_created", {"id": 1})
    db.rollback()
    assert publish_pending(db, broadcaster) == 0
    assert broadcaster.events == []


def test_empty_audience_is_skipped(db):
    broadcaster = RecordingBroadcaster()
    queue_event(db, "notification_sent", {"id": 1}, user_ids=[])
    publish_pending(db, broadcaster)
    assert broadcaster.topics() == []


def test_failed_push_does_not_propagate(db):
    broadcaster = ExplodingBroadcaster()
    queue_event(db, "asset_created", {"id": 1})
    queue_event(db, "asset_updated", {"id": 1})
    assert publish_pending(db, broadcaster) == 2
    assert broadcaster.calls == 2


class FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(message)


def test_connection_manager_targets_users_and_drops_dead_sockets():
    manager = ConnectionManager()
    desk, stale_tab, colleague = FakeSocket(), FakeSocket(broken=True), FakeSocket()

    async def scenario():
        await manager.connect(1, desk)
        await manager.connect(1, stale_tab)
        await manager.connect(2, colleague)
        await manager.send("notification", {"id": 5}, [1])
        await manager.send("asset_created", {"id": 9})

    asyncio.run(scenario())

    assert desk.accepted
    assert desk.sent == [
        {"event": "notification", "data": {"id": 5}},
        {"event": "asset_created", "data": {"id": 9}},
    ]
    assert colleague.sent == [{"event": "asset_created", "data": {"id": 9}}]
    assert manager.connected_user_ids() == {1, 2}


def test_publish_without_bound_loop_is_dropped():
    manager = ConnectionManager()
    manager.publish("notification", {"id": 1}, [1])
    assert manager.connected_user_ids() == set()


def _socket_sessions(monkeypatch, engine, seen):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    def open_session():
        try:
            asyncio.get_running_loop()
            seen.append("event_loop")
        except RuntimeError:
            seen.append("worker_thread")
        return factory()

    monkeypatch.setattr(realtime_router, "SessionLocal", open_session)


def test_socket_token_lookup_runs_off_the_event_loop(client, engine, staff_user, monkeypatch):
    seen = []
    _socket_sessions(monkeypatch, engine, seen)

    with client.websocket_connect(f"/ws?token={issue_user_token(staff_user)}") as socket:
        socket.send_text("ping")
        assert socket.receive_json() == {"event": "pong", "data": {}}
    assert seen == ["worker_thread"]


def test_socket_with_bad_token_is_closed(client, engine, monkeypatch):
    seen = []
    _socket_sessions(monkeypatch, engine, seen)

    with pytest.raises(WebSocketDisconnect) as closed:
        with client.websocket_connect("/ws?token=not-a-token") as socket:
            socket.receive_text()
    assert closed.value.code == status.WS_1008_POLICY_VIOLATION

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws") as socket:
            socket.receive_text()
    assert seen == ["worker_thread"]
