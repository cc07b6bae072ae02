"""Websocket endpoint for room collaboration."""
from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from ..core.config import settings
from ..services.hub import ClientConnection, ConnectionHub, hub as default_hub

logger = logging.getLogger(__name__)

router = APIRouter()


def get_hub() -> ConnectionHub:
    """FastAPI dependency returning the process-wide hub."""

    return default_hub


@router.websocket("/ws")
async def collaboration_endpoint(websocket: WebSocket, hub: ConnectionHub = Depends(get_hub)) -> None:
    """Bridge one websocket to the hub until the client goes away."""

    origin = websocket.headers.get("origin")
    if not settings.origin_allowed(origin):
        logger.warning("Rejecting websocket from origin %s", origin)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = uuid4().hex
    await websocket.accept()
    await hub.connect(ClientConnection(connection_id=connection_id, send=websocket.send_json))

    reason = "server shutdown"
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (KeyError, ValueError):
                logger.warning("Dropping undecodable frame from %s", connection_id)
                continue
            await hub.dispatch(connection_id, message)
    except WebSocketDisconnect as exc:
        reason = f"client disconnect ({exc.code})"
    finally:
        await hub.disconnect(connection_id, reason)
