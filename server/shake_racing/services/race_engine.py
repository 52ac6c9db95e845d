"""Authoritative game session: race state machine and tick simulation.

Status only moves REGISTRATION -> RACING -> FINISHED within a race; a reset is
the only way back to REGISTRATION. Positions change only while RACING, so once
a winner is declared every team is frozen at the value it reached on the
finishing tick.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from shake_racing.models import (
    GameSettings,
    GameStatus,
    GuardNotMet,
    Player,
    StaleReference,
    Team,
)
from shake_racing.services.player_registry import DECAY_STEP, IDLE_THRESHOLD, PlayerRegistry
from shake_racing.services.roster import Roster

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.05  # seconds per race tick
TRACK_LENGTH = 1000.0  # track units from start to finish line


@dataclass
class TickResult:
    """What a racing tick produced, for broadcasting."""

    teams: list[Team]
    winner: Team | None
    just_finished: bool


class GameSession:
    """The single mutable game state shared by connections and the tick loop."""

    def __init__(
        self,
        settings: GameSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = TICK_SECONDS,
        track_length: float = TRACK_LENGTH,
        idle_threshold: float = IDLE_THRESHOLD,
        decay_step: float = DECAY_STEP,
    ) -> None:
        self.settings = settings or GameSettings()
        self.roster = Roster(self.settings)
        self.players = PlayerRegistry()
        self.status = GameStatus.REGISTRATION
        self.race_started_at: datetime | None = None
        self.winner_id: int | None = None

        self.clock = clock
        self.tick_seconds = tick_seconds
        self.track_length = track_length
        self.idle_threshold = idle_threshold
        self.decay_step = decay_step

    @property
    def winner(self) -> Team | None:
        if self.winner_id is None:
            return None
        return self.roster.teams.get(self.winner_id)

    # --- Registration ---

    def register_player(self, team_id: object, team_name: str | None = None) -> Player:
        """Add a player to a team. Raises InvalidTeam or TeamFull."""
        player_id = self.roster.register_player(team_id, team_name)
        team = self.roster.get_team(team_id)
        assert team is not None
        player = self.players.create(player_id, team.id, self.clock())
        logger.info("Player %s registered to team %d", player_id, team.id)
        return player

    def remove_player(self, player_id: str) -> None:
        self.roster.remove_player(player_id)
        self.players.delete(player_id)

    def report_input(self, player_id: str, intensity: float) -> None:
        if not self.players.report_input(player_id, intensity, self.clock()):
            raise StaleReference()

    # --- State machine ---

    def start_race(self) -> None:
        """REGISTRATION -> RACING. Raises GuardNotMet if not allowed."""
        if self.status is not GameStatus.REGISTRATION:
            raise GuardNotMet("Race already started")
        active = len(self.roster.active_teams())
        if active < self.settings.min_teams:
            raise GuardNotMet(
                f"Need at least {self.settings.min_teams} team(s) to start, have {active}"
            )

        self.status = GameStatus.RACING
        self.race_started_at = datetime.now(UTC)
        self.winner_id = None
        self.roster.reset_race_progress()
        logger.info("Race started with %d team(s)", active)

    def reset_game(self) -> None:
        """Return to an empty REGISTRATION state for the current settings."""
        self.players.clear()
        self.roster.initialize(self.settings)
        self.status = GameStatus.REGISTRATION
        self.race_started_at = None
        self.winner_id = None
        logger.info("Game reset - all players removed")

    def update_settings(
        self,
        *,
        num_teams: int | None = None,
        max_players: int | None = None,
        min_teams: int | None = None,
        speed_coef: float | None = None,
    ) -> None:
        """Apply settings changes and rebuild the roster.

        Only allowed during REGISTRATION; raises GuardNotMet otherwise.
        Raises InvalidSettings without touching anything if the merged
        settings are inconsistent.
        """
        if self.status is not GameStatus.REGISTRATION:
            raise GuardNotMet("Reset the game before changing settings")
        new_settings = self.settings.with_changes(
            num_teams=num_teams,
            max_players=max_players,
            min_teams=min_teams,
            speed_coef=speed_coef,
        )
        self.settings = new_settings
        self.players.clear()
        self.roster.initialize(new_settings)
        logger.info("Settings updated: %s", new_settings)

    # --- Simulation ---

    def tick(self) -> TickResult | None:
        """Run one simulation step.

        Decay always runs. Returns None unless the race was running when the
        tick began.
        """
        self.players.decay(self.clock(), self.idle_threshold, self.decay_step)

        if self.status is not GameStatus.RACING:
            return None

        just_finished = False
        teams = self.roster.active_teams()
        for team in teams:
            team.shake_intensity = sum(self.players.intensity(pid) for pid in team.players)
            speed = team.shake_intensity * self.settings.speed_coef * self.settings.base_speed
            team.position += max(0.0, speed) * self.tick_seconds

            if team.position >= self.track_length and self.winner_id is None:
                self.winner_id = team.id
                self.status = GameStatus.FINISHED
                just_finished = True
                logger.info("Race finished! Winner: team %d (%s)", team.id, team.name)

        return TickResult(teams=teams, winner=self.winner, just_finished=just_finished)
