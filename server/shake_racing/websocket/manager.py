"""WebSocket connection manager: who is connected and in which role."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import WebSocket

from shake_racing.models import ClientRole

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 5.0  # seconds before a send is considered failed


@dataclass(eq=False)
class ClientConnection:
    """A connected client. Role and player id are set on registration."""

    websocket: WebSocket
    role: ClientRole | None = None
    player_id: str | None = None


class ConnectionManager:
    """Tracks every open connection and fans messages out by role."""

    def __init__(self) -> None:
        self.connections: list[ClientConnection] = []

    def connect(self, websocket: WebSocket) -> ClientConnection:
        conn = ClientConnection(websocket=websocket)
        self.connections.append(conn)
        logger.info("Client connected (%d open)", len(self.connections))
        return conn

    def disconnect(self, conn: ClientConnection) -> None:
        try:
            self.connections.remove(conn)
        except ValueError:
            return  # Already dropped after a failed send
        logger.info("Client disconnected (role=%s)", conn.role.value if conn.role else None)

    def with_role(self, role: ClientRole) -> list[ClientConnection]:
        return [c for c in self.connections if c.role is role]

    @property
    def displays(self) -> list[ClientConnection]:
        return self.with_role(ClientRole.DISPLAY)

    @property
    def admins(self) -> list[ClientConnection]:
        return self.with_role(ClientRole.ADMIN)

    @property
    def players(self) -> list[ClientConnection]:
        return self.with_role(ClientRole.PLAYER)

    def forget_players(self) -> None:
        """Detach every player connection from its (now deleted) player record."""
        for conn in self.players:
            conn.player_id = None

    async def send(self, conn: ClientConnection, message: str) -> bool:
        """Send to one connection. Returns False if the send failed."""
        try:
            await asyncio.wait_for(conn.websocket.send_text(message), timeout=SEND_TIMEOUT)
        except Exception:
            return False
        return True

    async def _broadcast(self, targets: Iterable[ClientConnection], message: str) -> None:
        # Snapshot so connects/disconnects during the gather don't interfere
        snapshot = list(targets)
        if not snapshot:
            return

        results = await asyncio.gather(*(self.send(c, message) for c in snapshot))
        for conn, ok in zip(snapshot, results, strict=True):
            if not ok:
                logger.warning("Dropping unresponsive client (role=%s)", conn.role)
                self.disconnect(conn)
                try:
                    await conn.websocket.close()
                except Exception:
                    pass

    async def broadcast_to_all(self, message: str) -> None:
        """Send to every open connection, registered or not."""
        await self._broadcast(self.connections, message)

    async def broadcast_to_displays(self, message: str) -> None:
        await self._broadcast(self.displays, message)
