"""
api/routes/v1/notifications.py -- Admin websocket feed of funko writes.

  WS /ws/funkos?token=<jwt>

Browsers cannot set an Authorization header on a websocket handshake, so the
token travels as a query parameter. Non-admin or invalid tokens are closed
with 1008 (policy violation) before the handshake is accepted.

Each message is {"event": "FUNKO_CREATED" | "FUNKO_UPDATED" | "FUNKO_PATCHED"
| "FUNKO_DELETED", "data": {...funko...}}.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from auth.models import Role
from notifications.hub import Subscription

router = APIRouter()

logger = logging.getLogger("funkostore.api.ws")


async def _forward(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        await websocket.send_json(await sub.queue.get())


async def _watch_disconnect(websocket: WebSocket) -> None:
    # Client frames are ignored; receive_text raises WebSocketDisconnect on close.
    while True:
        await websocket.receive_text()


@router.websocket("/ws/funkos")
async def funko_feed(websocket: WebSocket, token: str = "") -> None:
    gate = websocket.app.state.role_gate
    if not gate.allows(token, Role.ADMIN):
        logger.warning("Rejected notification subscriber without admin token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub = websocket.app.state.notification_hub
    # Subscribe before accepting so no event published after the handshake is missed.
    sub = hub.subscribe()
    try:
        await websocket.accept()
        tasks = {
            asyncio.create_task(_forward(websocket, sub)),
            asyncio.create_task(_watch_disconnect(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
        logger.info("Notification subscriber went away")
    finally:
        hub.unsubscribe(sub)
