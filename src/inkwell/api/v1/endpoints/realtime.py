"""WebSocket endpoint for realtime feed updates.

Connect with: ws://host/api/v1/ws?token=<jwt_token> or with an
``Authorization: Bearer`` header.

Messages received:
- {"event": "realtime:connected", "data": {"user": {...}}} once accepted
- {"event": "<name>", "data": {...}} for every broadcast

Messages you can send:
- "ping" (or {"event": "ping"}) - answered with a pong

Binary frames are ignored.
"""

import json
import logging

from fastapi import APIRouter, WebSocket

from inkwell.api.v1.dependencies import SessionFactoryDep
from inkwell.core.errors import AuthenticationError
from inkwell.services.realtime import (
    AUTH_FAILURE_CLOSE_CODE,
    AUTH_FAILURE_REASON,
    extract_token,
    init_notifier,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _is_json_ping(message: str) -> bool:
    try:
        data = json.loads(message)
    except ValueError:
        return False
    return isinstance(data, dict) and "ping" in (data.get("event"), data.get("type"))


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, sessions: SessionFactoryDep) -> None:
    notifier = init_notifier(websocket.app)
    try:
        with sessions() as db:
            user = notifier.authenticate_connection(extract_token(websocket), db)
    except AuthenticationError as err:
        logger.warning("Realtime authentication failed: %s", err.message)
        await websocket.close(code=AUTH_FAILURE_CLOSE_CODE, reason=AUTH_FAILURE_REASON)
        return

    await notifier.connect(websocket, user)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                continue
            if text.strip().lower() == "ping":
                await websocket.send_text("pong")
            elif _is_json_ping(text):
                await websocket.send_json({"event": "pong", "data": {}})
    finally:
        notifier.disconnect(websocket)
