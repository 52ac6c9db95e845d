"""WebSocket message schemas."""

import json
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveInt, TypeAdapter, ValidationError

from shake_racing.models import MalformedMessage
from shake_racing.schemas import StateSnapshot, TeamInfo, WireModel

# --- Client -> Server Messages ---


class RequestStateMessage(WireModel):
    """Snapshot request from a connection that has not registered yet."""

    type: Literal["request_state"] = "request_state"


class RegisterDisplayMessage(WireModel):
    type: Literal["register_display"] = "register_display"


class RegisterAdminMessage(WireModel):
    type: Literal["register_admin"] = "register_admin"


class RegisterPlayerMessage(WireModel):
    """Join a team. The first member's team name sticks."""

    type: Literal["register_player"] = "register_player"
    team_id: int | str | None = None
    team_name: str | None = None


class UpdateShakeMessage(WireModel):
    """Latest shake intensity reported by a player's device."""

    type: Literal["update_shake"] = "update_shake"
    intensity: float


class StartRaceMessage(WireModel):
    type: Literal["start_race"] = "start_race"


class UpdateSettingsMessage(WireModel):
    """Admin settings change. Omitted or null fields keep their value."""

    type: Literal["update_settings"] = "update_settings"
    num_teams: PositiveInt | None = None
    max_players: PositiveInt | None = None
    min_teams: PositiveInt | None = None
    speed_coef: NonNegativeFloat | None = None


class ResetGameMessage(WireModel):
    type: Literal["reset_game"] = "reset_game"


ClientMessage = Annotated[
    RequestStateMessage
    | RegisterDisplayMessage
    | RegisterAdminMessage
    | RegisterPlayerMessage
    | UpdateShakeMessage
    | StartRaceMessage
    | UpdateSettingsMessage
    | ResetGameMessage,
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(data: str) -> ClientMessage:
    """Parse a raw text frame. Raises MalformedMessage on any failure."""
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise MalformedMessage(f"Invalid JSON: {e}") from e
    try:
        return client_message_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid message: {e.error_count()} error(s)") from e


# --- Server -> Client Messages ---


class GameStateMessage(WireModel):
    """Full snapshot."""

    type: Literal["game_state"] = "game_state"
    state: StateSnapshot


class PlayerRegisteredMessage(WireModel):
    """Registration confirmation, sent only to the new player."""

    type: Literal["player_registered"] = "player_registered"
    player_id: str
    team_id: int
    team_name: str


class SettingsUpdatedMessage(WireModel):
    type: Literal["settings_updated"] = "settings_updated"
    state: StateSnapshot


class GameResetMessage(WireModel):
    type: Literal["game_reset"] = "game_reset"
    state: StateSnapshot


class RaceStartedMessage(WireModel):
    type: Literal["race_started"] = "race_started"
    state: StateSnapshot


class RaceTeamInfo(WireModel):
    """Per-team progress in a race update."""

    id: int
    name: str
    position: float
    shake_intensity: float
    player_count: int


class RaceUpdateMessage(WireModel):
    """Tick-driven progress broadcast to displays."""

    type: Literal["race_update"] = "race_update"
    teams: list[RaceTeamInfo]
    winner: int | None = None


class RaceFinishedMessage(WireModel):
    type: Literal["race_finished"] = "race_finished"
    winner: TeamInfo


class ErrorMessage(WireModel):
    """Error sent to the originating connection only."""

    type: Literal["error"] = "error"
    message: str
