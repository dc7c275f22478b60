"""
Live update WebSocket endpoint.

Viewers connect to /ws and receive an attendance_update event every time
any section is marked. A session token (cookie or ?token=) is optional;
when present it only annotates the connection in the broadcaster.
Sending the text "ping" gets a {"type": "pong"} reply.
"""

from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from rollbook.config import settings
from rollbook.errors import AuthenticationError
from rollbook.routes.deps import get_broadcaster
from rollbook.services.security import decode_session_token

router = APIRouter()


def _session_claims(websocket: WebSocket, token: Optional[str]) -> dict:
    token = token or websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return {}
    try:
        return decode_session_token(token)
    except AuthenticationError:
        # Anonymous viewers are allowed
        return {}


@router.websocket("/ws")
async def live_updates(websocket: WebSocket, token: Optional[str] = None):
    broadcaster = get_broadcaster(websocket)
    claims = _session_claims(websocket, token)

    await websocket.accept()
    broadcaster.register(
        websocket,
        user_id=int(claims["sub"]) if claims.get("sub", "").isdigit() else None,
        role=claims.get("role")
    )
    try:
        while True:
            text = await websocket.receive_text()
            if text.strip().lower() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.deregister(websocket)
