"""Pydantic schemas for the game state snapshot.

Field names go over the wire in camelCase; use ``model_dump_json(by_alias=True)``.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shake_racing.models import GameSettings, Player, Team
from shake_racing.services.race_engine import GameSession


class WireModel(BaseModel):
    """Base for everything serialized to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SettingsInfo(WireModel):
    num_teams: int
    max_players: int
    min_teams: int
    speed_coef: float
    base_speed: float


class TeamInfo(WireModel):
    id: int
    name: str
    players: list[str]
    position: float
    shake_intensity: float


class PlayerInfo(WireModel):
    id: str
    team_id: int
    shake_intensity: float
    last_shake: int  # monotonic milliseconds of the last input


class StateSnapshot(WireModel):
    """Full game state sent on connect and after every state change."""

    settings: SettingsInfo
    teams: dict[int, TeamInfo]
    players: dict[str, PlayerInfo]
    game_status: str
    race_start_time: datetime | None = None
    winner: TeamInfo | None = None


def settings_to_info(settings: GameSettings) -> SettingsInfo:
    return SettingsInfo(
        num_teams=settings.num_teams,
        max_players=settings.max_players,
        min_teams=settings.min_teams,
        speed_coef=settings.speed_coef,
        base_speed=settings.base_speed,
    )


def team_to_info(team: Team) -> TeamInfo:
    return TeamInfo(
        id=team.id,
        name=team.name,
        players=list(team.players),
        position=team.position,
        shake_intensity=team.shake_intensity,
    )


def player_to_info(player: Player) -> PlayerInfo:
    return PlayerInfo(
        id=player.id,
        team_id=player.team_id,
        shake_intensity=player.shake_intensity,
        last_shake=int(player.last_input_at * 1000),
    )


def build_snapshot(game: GameSession) -> StateSnapshot:
    """Serialize the whole game session."""
    winner = game.winner
    return StateSnapshot(
        settings=settings_to_info(game.settings),
        teams={team_id: team_to_info(t) for team_id, t in game.roster.teams.items()},
        players={pid: player_to_info(p) for pid, p in game.players.players.items()},
        game_status=game.status.value,
        race_start_time=game.race_started_at,
        winner=team_to_info(winner) if winner else None,
    )
