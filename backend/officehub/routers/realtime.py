from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from officehub.core.deps import resolve_user_from_token
from officehub.db.session import SessionLocal

router = APIRouter(tags=["realtime"])
logger = logging.getLogger("security")


def socket_user_id(token: str) -> Optional[int]:
    """Blocking token lookup; the socket handler runs it in the threadpool."""
    db = SessionLocal()
    try:
        user = resolve_user_from_token(db, token)
        return user.id if user else None
    finally:
        db.close()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: str = Query("")) -> None:
    user_id = await run_in_threadpool(socket_user_id, token) if token else None

    if user_id is None:
        logger.info("websocket_rejected path=%s", websocket.url.path)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = websocket.app.state.broadcaster
    await manager.connect(user_id, websocket)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"event": "pong", "data": {}})
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(user_id, websocket)
