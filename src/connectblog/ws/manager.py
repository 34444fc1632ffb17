"""WebSocket connection manager.

Holds the open sockets by connection id and delivers messages to a single
connection. Which user a connection belongs to is tracked separately by the
presence map.
"""

import json
import time
from dataclasses import dataclass, field

from fastapi import WebSocket
import structlog

logger = structlog.get_logger()


@dataclass
class ClientConnection:
    """Represents a single WebSocket client."""

    websocket: WebSocket
    connected_at: float = field(default_factory=time.time)
    user_id: int | None = None
    messages_sent: int = 0


class ConnectionManager:
    """Tracks active WebSocket connections. Single event loop, no locking."""

    def __init__(self) -> None:
        self._connections: dict[str, ClientConnection] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, conn_id: str) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self._connections[conn_id] = ClientConnection(websocket=websocket)
        logger.info("ws_connected", conn_id=conn_id)

    def identify(self, conn_id: str, user_id: int) -> bool:
        """Record which user announced itself on a connection."""
        client = self._connections.get(conn_id)
        if client is None:
            return False
        client.user_id = user_id
        return True

    async def disconnect(self, conn_id: str) -> None:
        """Forget a connection. Unknown ids are ignored."""
        client = self._connections.pop(conn_id, None)
        if client is None:
            return
        logger.info("ws_disconnected", conn_id=conn_id, user_id=client.user_id)

    async def send(self, conn_id: str, message: dict) -> bool:
        """Send a JSON message to one connection. Returns False if it is gone."""
        client = self._connections.get(conn_id)
        if client is None:
            return False
        try:
            await client.websocket.send_text(json.dumps(message))
        except Exception:
            logger.warning("ws_send_failed", conn_id=conn_id, exc_info=True)
            await self.disconnect(conn_id)
            return False
        client.messages_sent += 1
        return True

    def get_stats(self) -> dict:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "identified": sum(1 for c in self._connections.values() if c.user_id is not None),
        }
