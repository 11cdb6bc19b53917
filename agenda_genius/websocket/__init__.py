"""WebSocket infrastructure for streaming chat to the browser."""

from .manager import ConnectionManager, ConnectionInfo, WebSocketHandler, ws_manager

__all__ = [
    "ConnectionManager",
    "ConnectionInfo",
    "WebSocketHandler",
    "ws_manager",
]
