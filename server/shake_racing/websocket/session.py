"""WebSocket handler and message dispatch for game connections."""

import logging

from fastapi import WebSocket, WebSocketDisconnect

from shake_racing.models import (
    ClientRole,
    GameError,
    MalformedMessage,
    StaleReference,
    UnauthorizedAction,
)
from shake_racing.schemas import build_snapshot
from shake_racing.services.race_engine import GameSession
from shake_racing.websocket.manager import ClientConnection, ConnectionManager
from shake_racing.websocket.schemas import (
    ClientMessage,
    ErrorMessage,
    GameResetMessage,
    GameStateMessage,
    PlayerRegisteredMessage,
    RaceStartedMessage,
    RegisterAdminMessage,
    RegisterDisplayMessage,
    RegisterPlayerMessage,
    RequestStateMessage,
    ResetGameMessage,
    SettingsUpdatedMessage,
    StartRaceMessage,
    UpdateSettingsMessage,
    UpdateShakeMessage,
    parse_client_message,
)

logger = logging.getLogger(__name__)

RACE_CONTROL_ROLES = (ClientRole.ADMIN, ClientRole.DISPLAY)


class SessionRouter:
    """Assigns roles to connections and applies their messages to the game."""

    def __init__(self, game: GameSession, connections: ConnectionManager) -> None:
        self.game = game
        self.connections = connections

    def state_message(self) -> str:
        return GameStateMessage(state=build_snapshot(self.game)).to_json()

    async def send_error(self, conn: ClientConnection, message: str) -> None:
        await self.connections.send(conn, ErrorMessage(message=message).to_json())

    async def handle_text(self, conn: ClientConnection, data: str) -> None:
        """Parse and dispatch one frame. Never raises for bad input."""
        try:
            message = parse_client_message(data)
        except MalformedMessage as e:
            logger.warning("Malformed message (ignored): %s", e)
            await self.send_error(conn, MalformedMessage.message)
            return

        try:
            await self.dispatch(conn, message)
        except StaleReference:
            logger.debug("Input for a removed player ignored")
        except GameError as e:
            logger.info("Rejected %s: %s", message.type, e.message)
            await self.send_error(conn, e.message)
        except Exception:
            logger.exception("Error handling %s", message.type)
            await self.send_error(conn, MalformedMessage.message)

    async def dispatch(self, conn: ClientConnection, message: ClientMessage) -> None:
        match message:
            case RequestStateMessage():
                if conn.role is None:
                    await self.connections.send(conn, self.state_message())
            case RegisterDisplayMessage():
                await self._assign_role(conn, ClientRole.DISPLAY)
            case RegisterAdminMessage():
                await self._assign_role(conn, ClientRole.ADMIN)
            case RegisterPlayerMessage():
                await self._register_player(conn, message)
            case UpdateShakeMessage():
                if conn.role is not ClientRole.PLAYER or conn.player_id is None:
                    raise StaleReference()
                self.game.report_input(conn.player_id, message.intensity)
            case StartRaceMessage():
                self._require_role(conn, *RACE_CONTROL_ROLES)
                self.game.start_race()
                state = build_snapshot(self.game)
                await self.connections.broadcast_to_all(RaceStartedMessage(state=state).to_json())
            case UpdateSettingsMessage():
                self._require_role(conn, ClientRole.ADMIN)
                self.game.update_settings(
                    num_teams=message.num_teams,
                    max_players=message.max_players,
                    min_teams=message.min_teams,
                    speed_coef=message.speed_coef,
                )
                self.connections.forget_players()
                state = build_snapshot(self.game)
                await self.connections.broadcast_to_all(
                    SettingsUpdatedMessage(state=state).to_json()
                )
            case ResetGameMessage():
                self._require_role(conn, *RACE_CONTROL_ROLES)
                self.game.reset_game()
                self.connections.forget_players()
                state = build_snapshot(self.game)
                await self.connections.broadcast_to_all(GameResetMessage(state=state).to_json())

    def _require_role(self, conn: ClientConnection, *roles: ClientRole) -> None:
        if conn.role not in roles:
            raise UnauthorizedAction()

    async def _assign_role(self, conn: ClientConnection, role: ClientRole) -> None:
        if conn.role is not None and conn.role is not role:
            raise UnauthorizedAction("Role already assigned")
        conn.role = role
        logger.info("%s registered", role.value.capitalize())
        await self.connections.send(conn, self.state_message())

    async def _register_player(
        self, conn: ClientConnection, message: RegisterPlayerMessage
    ) -> None:
        # Players evicted by a reset or settings change may join again
        if conn.player_id is not None:
            raise UnauthorizedAction("Already registered")
        if conn.role not in (None, ClientRole.PLAYER):
            raise UnauthorizedAction("Role already assigned")

        player = self.game.register_player(message.team_id, message.team_name)
        conn.role = ClientRole.PLAYER
        conn.player_id = player.id

        team = self.game.roster.teams[player.team_id]
        registered = PlayerRegisteredMessage(
            player_id=player.id, team_id=team.id, team_name=team.name
        )
        state = self.state_message()
        await self.connections.send(conn, registered.to_json())
        await self.connections.broadcast_to_all(state)

    async def handle_disconnect(self, conn: ClientConnection) -> None:
        self.connections.disconnect(conn)
        if conn.role is not ClientRole.PLAYER:
            return
        if conn.player_id is not None:
            self.game.remove_player(conn.player_id)
            conn.player_id = None
        await self.connections.broadcast_to_all(self.state_message())


async def handle_game_websocket(websocket: WebSocket, router: SessionRouter) -> None:
    """Handle one client connection for its whole lifetime."""
    await websocket.accept()
    conn = router.connections.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            await router.handle_text(conn, data)
    except WebSocketDisconnect:
        logger.debug("Client closed the connection")
    except Exception as e:
        logger.error(f"Error in game websocket: {e}")
    finally:
        await router.handle_disconnect(conn)
