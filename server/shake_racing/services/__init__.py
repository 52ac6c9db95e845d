"""Game logic services."""

from shake_racing.services.player_registry import PlayerRegistry
from shake_racing.services.race_engine import GameSession, TickResult
from shake_racing.services.roster import Roster

__all__ = [
    "GameSession",
    "PlayerRegistry",
    "Roster",
    "TickResult",
]
