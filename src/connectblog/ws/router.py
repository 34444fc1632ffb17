"""Realtime channel: clients announce who they are and receive notification pushes."""

import json
import uuid

import jwt
import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from connectblog.auth.jwt import user_id_from_token
from connectblog.social.presence import PresenceMap
from connectblog.ws.manager import ConnectionManager

logger = structlog.get_logger()

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Single WebSocket endpoint.

    Protocol:
        Client -> Server:
            {"action": "register", "token": "<access token>"}
            {"action": "ping"}

        Server -> Client:
            {"type": "registered"}
            {"type": "pong"}
            {"type": "newNotification", "data": {"type": "like", "from": "alice"}}
            {"type": "error", "message": "..."}
    """
    connections: ConnectionManager = websocket.app.state.connections
    presence: PresenceMap = websocket.app.state.presence

    conn_id = str(uuid.uuid4())
    await connections.connect(websocket, conn_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(msg, dict):
                await websocket.send_json({"type": "error", "message": "Expected a JSON object"})
                continue

            action = msg.get("action")

            if action == "register":
                try:
                    user_id = user_id_from_token(str(msg.get("token", "")))
                except jwt.InvalidTokenError as e:
                    await websocket.send_json({"type": "error", "message": f"Authentication failed: {e}"})
                    continue
                presence.register(user_id, conn_id)
                connections.identify(conn_id, user_id)
                logger.info("ws_registered", conn_id=conn_id, user_id=user_id)
                await websocket.send_json({"type": "registered"})

            elif action == "ping":
                await websocket.send_json({"type": "pong"})

            else:
                await websocket.send_json({
                    "type": "error",
                    "message": f"Unknown action: {action}",
                })

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_error", conn_id=conn_id)
    finally:
        presence.unregister(conn_id)
        await connections.disconnect(conn_id)
