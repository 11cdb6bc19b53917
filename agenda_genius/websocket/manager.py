"""
WebSocket Connection Manager

Tracks browser connections per topic (e.g. "chat") and runs the receive
loop for handlers.
"""

import asyncio
import logging
from typing import Dict, Set, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ConnectionInfo:
    """Information about a WebSocket connection."""
    websocket: WebSocket
    connected_at: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)


class ConnectionManager:
    """
    Manages WebSocket connections across topics.

    Features:
    - Topic-based subscription
    - Reverse lookup for disconnects
    """

    def __init__(self):
        # topic -> set of ConnectionInfo
        self._connections: Dict[str, Set[ConnectionInfo]] = {}
        # websocket -> (topic, ConnectionInfo) for reverse lookup
        self._websocket_map: Dict[WebSocket, tuple[str, ConnectionInfo]] = {}
        self._lock = asyncio.Lock()

    async def connect(
        self,
        websocket: WebSocket,
        topic: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ConnectionInfo:
        """
        Accept a WebSocket connection and subscribe it to a topic.

        Args:
            websocket: The WebSocket connection
            topic: Topic to subscribe to
            metadata: Optional metadata about the connection

        Returns:
            ConnectionInfo for the new connection
        """
        await websocket.accept()

        conn_info = ConnectionInfo(websocket=websocket, metadata=metadata or {})

        async with self._lock:
            self._connections.setdefault(topic, set()).add(conn_info)
            self._websocket_map[websocket] = (topic, conn_info)

        logger.info(f"WebSocket connected to topic: {topic}")
        return conn_info

    async def disconnect(self, websocket: WebSocket) -> Optional[str]:
        """
        Remove a WebSocket connection.

        Returns:
            The topic the connection was subscribed to, or None
        """
        async with self._lock:
            if websocket not in self._websocket_map:
                return None

            topic, conn_info = self._websocket_map.pop(websocket)

            if topic in self._connections:
                self._connections[topic].discard(conn_info)
                if not self._connections[topic]:
                    del self._connections[topic]

        logger.info(f"WebSocket disconnected from topic: {topic}")
        return topic

    def get_connection_count(self, topic: Optional[str] = None) -> int:
        if topic:
            return len(self._connections.get(topic, set()))
        return len(self._websocket_map)

    def get_topics(self) -> list[str]:
        return list(self._connections.keys())


# Global connection manager instance
ws_manager = ConnectionManager()


class WebSocketHandler:
    """
    Base class for WebSocket message handlers.

    Subclass and implement handle_message for specific functionality.
    """

    def __init__(self, manager: ConnectionManager = None):
        self.manager = manager or ws_manager

    async def handle_connection(
        self,
        websocket: WebSocket,
        topic: str,
        metadata: Optional[Dict[str, Any]] = None
    ):
        """Run one connection from accept to disconnect."""
        conn_info = await self.manager.connect(websocket, topic, metadata)

        try:
            await websocket.send_json({
                "type": "connected",
                "topic": topic,
                "timestamp": datetime.utcnow().isoformat()
            })

            # Message loop
            while True:
                data = await websocket.receive_json()
                await self.handle_message(websocket, topic, data, conn_info)

        except WebSocketDisconnect:
            logger.info(f"Client disconnected from {topic}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            try:
                await websocket.send_json({"type": "error", "message": str(e)})
            except Exception as send_error:
                logger.debug(f"Could not report error to client: {send_error}")
        finally:
            await self.manager.disconnect(websocket)
            await self.on_disconnect(websocket, topic, conn_info)

    async def handle_message(
        self,
        websocket: WebSocket,
        topic: str,
        data: dict,
        conn_info: ConnectionInfo
    ):
        """Handle an incoming message. Override in subclasses."""
        raise NotImplementedError

    async def on_disconnect(
        self,
        websocket: WebSocket,
        topic: str,
        conn_info: ConnectionInfo
    ):
        """Called when a connection is closed. Override for cleanup."""
        pass
