# src/inkwell/services/realtime.py
"""Process-wide broadcast of state changes to connected websocket clients.

Broadcasts are best effort. A mutation is committed before its event is
sent, so a failed delivery only drops the broken connection.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, WebSocket
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from inkwell.core.errors import AuthenticationError
from inkwell.core.security import decode_access_token
from inkwell.models import User
from inkwell.services.users import get_active_user

logger = logging.getLogger(__name__)

CONNECTED_EVENT = "realtime:connected"
AUTH_FAILURE_CLOSE_CODE = 4001
AUTH_FAILURE_REASON = "AUTHENTICATION_ERROR"


def extract_token(websocket: WebSocket) -> str | None:
    """Return the bearer token from the Authorization header or `token` query param."""
    header = websocket.headers.get("authorization", "")
    if header.startswith("Bearer ") and header[7:].strip():
        return header[7:].strip()

    query_token = websocket.query_params.get("token", "").strip()
    return query_token or None


class RealtimeNotifier:
    """Tracks live connections and fans events out to all of them."""

    def __init__(self) -> None:
        self._connections: dict[WebSocket, int] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def authenticate_connection(self, token: str | None, db: Session) -> User:
        """Resolve a handshake token to an active user.

        Raises:
            AuthenticationError: Token missing, invalid or for an inactive user.
        """
        if not token:
            raise AuthenticationError("Access token required")
        payload = decode_access_token(token)
        return get_active_user(db, payload["user_id"])

    async def connect(self, websocket: WebSocket, user: User) -> None:
        """Accept the socket, register it and greet the user."""
        await websocket.accept()
        self._connections[websocket] = user.id
        logger.info("Realtime client connected for user %s", user.id)
        await websocket.send_json(
            {
                "event": CONNECTED_EVENT,
                "data": {
                    "user": {
                        "id": user.id,
                        "username": user.username,
                        "role": user.role.value,
                    }
                },
            }
        )

    def disconnect(self, websocket: WebSocket) -> None:
        user_id = self._connections.pop(websocket, None)
        if user_id is not None:
            logger.info("Realtime client disconnected for user %s", user_id)

    async def broadcast(self, event: str, payload: Any) -> None:
        """Send `{"event", "data"}` to every connection. Never raises."""
        message = {"event": event, "data": jsonable_encoder(payload)}
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception:
                logger.warning(
                    "Dropping realtime connection after failed %s delivery",
                    event,
                    exc_info=True,
                )
                self.disconnect(websocket)


def init_notifier(app: FastAPI) -> RealtimeNotifier:
    """Attach the notifier to `app`, reusing one that already exists."""
    notifier: RealtimeNotifier | None = getattr(app.state, "notifier", None)
    if notifier is None:
        notifier = RealtimeNotifier()
        app.state.notifier = notifier
    return notifier
