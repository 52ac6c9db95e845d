"""WebSocket handlers for Shake Racing."""

from shake_racing.websocket.manager import ClientConnection, ConnectionManager
from shake_racing.websocket.session import SessionRouter, handle_game_websocket

__all__ = [
    "ClientConnection",
    "ConnectionManager",
    "SessionRouter",
    "handle_game_websocket",
]
