"""Domain models for Shake Racing.

Everything lives in memory; a process restart starts a fresh game.
"""

import enum
import secrets
from dataclasses import dataclass, field, replace

BASE_SPEED = 1000 / 330  # track units per intensity unit per second


class GameStatus(enum.Enum):
    """Race lifecycle status."""

    REGISTRATION = "registration"  # Teams filling up
    RACING = "racing"  # Ticks advance positions
    FINISHED = "finished"  # Winner declared, waiting for reset


class ClientRole(enum.Enum):
    """Capability class of a connection, fixed once assigned."""

    PLAYER = "player"
    DISPLAY = "display"
    ADMIN = "admin"


# --- Errors ---


class GameError(Exception):
    """Base class for errors reported back to the requesting connection."""

    message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidTeam(GameError):
    message = "Invalid team"


class TeamFull(GameError):
    message = "Team is full"


class InvalidSettings(GameError):
    message = "Invalid settings"


class GuardNotMet(GameError):
    """A state transition was requested while its precondition does not hold."""

    message = "Cannot do that right now"


class UnauthorizedAction(GameError):
    message = "Not authorized"


class StaleReference(GameError):
    """Input for a player that no longer exists. Never reported to clients."""

    message = "Unknown player"


class MalformedMessage(GameError):
    message = "Server error"


# --- Game data ---


def generate_player_id() -> str:
    """Generate an opaque, unguessable player id."""
    return secrets.token_urlsafe(12)


@dataclass(frozen=True)
class GameSettings:
    """Tunables an admin can change between races."""

    num_teams: int = 7
    max_players: int = 3
    min_teams: int = 1
    speed_coef: float = 1.0
    base_speed: float = BASE_SPEED

    def __post_init__(self) -> None:
        if self.num_teams < 1 or self.max_players < 1 or self.min_teams < 1:
            raise InvalidSettings()
        if self.min_teams > self.num_teams:
            raise InvalidSettings("Minimum teams cannot exceed number of teams")
        if self.speed_coef < 0:
            raise InvalidSettings()

    def with_changes(
        self,
        *,
        num_teams: int | None = None,
        max_players: int | None = None,
        min_teams: int | None = None,
        speed_coef: float | None = None,
    ) -> "GameSettings":
        """Return a copy with every non-None field applied."""
        changes = {
            "num_teams": num_teams,
            "max_players": max_players,
            "min_teams": min_teams,
            "speed_coef": speed_coef,
        }
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@dataclass
class Team:
    """A racing team. Members are kept in join order."""

    id: int
    name: str = ""
    players: list[str] = field(default_factory=list)
    position: float = 0.0
    shake_intensity: float = 0.0

    @property
    def is_active(self) -> bool:
        return bool(self.players)


@dataclass
class Player:
    """Input state for one connected player."""

    id: str
    team_id: int
    shake_intensity: float = 0.0
    last_input_at: float = 0.0  # time.monotonic() seconds
