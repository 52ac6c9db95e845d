"""Team roster: which teams exist and who plays for them."""

import logging

from shake_racing.models import GameSettings, InvalidTeam, Team, TeamFull, generate_player_id

logger = logging.getLogger(__name__)


class Roster:
    """Teams 1..N and their ordered membership."""

    def __init__(self, settings: GameSettings) -> None:
        self.teams: dict[int, Team] = {}
        self.max_players = settings.max_players
        self.initialize(settings)

    def initialize(self, settings: GameSettings) -> None:
        """Replace every team with a fresh, empty one.

        Player records held elsewhere must be dropped by the caller in the
        same step.
        """
        self.max_players = settings.max_players
        self.teams = {i: Team(id=i) for i in range(1, settings.num_teams + 1)}

    def get_team(self, team_id: object) -> Team | None:
        if isinstance(team_id, bool):
            return None
        try:
            return self.teams.get(int(team_id))  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return None

    def register_player(self, team_id: object, proposed_name: str | None = None) -> str:
        """Add a new player to a team and return its id.

        Raises InvalidTeam for an unknown team and TeamFull when the team is at
        capacity; in both cases nothing changes.
        """
        team = self.get_team(team_id)
        if team is None:
            raise InvalidTeam()
        if len(team.players) >= self.max_players:
            raise TeamFull()

        # Only the first member names the team
        if not team.players and proposed_name:
            team.name = proposed_name

        player_id = generate_player_id()
        team.players.append(player_id)
        return player_id

    def remove_player(self, player_id: str) -> None:
        """Remove a player from whichever team holds it. Idempotent."""
        for team in self.teams.values():
            if player_id in team.players:
                team.players.remove(player_id)
                logger.debug("Removed player %s from team %d", player_id, team.id)
                return

    def active_teams(self) -> list[Team]:
        """Teams with at least one member, in id order."""
        return [team for _, team in sorted(self.teams.items()) if team.is_active]

    def reset_race_progress(self) -> None:
        for team in self.teams.values():
            team.position = 0.0
            team.shake_intensity = 0.0
