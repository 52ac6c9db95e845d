"""Per-player shake input and its decay."""

from shake_racing.models import Player

IDLE_THRESHOLD = 0.2  # seconds without input before decay kicks in
DECAY_STEP = 0.5  # intensity removed per tick while idle


class PlayerRegistry:
    """Player records keyed by player id."""

    def __init__(self) -> None:
        self.players: dict[str, Player] = {}

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.players

    def __len__(self) -> int:
        return len(self.players)

    def get(self, player_id: str) -> Player | None:
        return self.players.get(player_id)

    def create(self, player_id: str, team_id: int, now: float) -> Player:
        player = Player(id=player_id, team_id=team_id, last_input_at=now)
        self.players[player_id] = player
        return player

    def report_input(self, player_id: str, intensity: float, now: float) -> bool:
        """Record the latest shake intensity. Returns False for unknown players."""
        player = self.players.get(player_id)
        if player is None:
            return False
        player.shake_intensity = intensity
        player.last_input_at = now
        return True

    def decay(
        self,
        now: float,
        idle_threshold: float = IDLE_THRESHOLD,
        decay_step: float = DECAY_STEP,
    ) -> None:
        """Lower the intensity of every player idle for longer than the threshold."""
        for player in self.players.values():
            if now - player.last_input_at > idle_threshold:
                player.shake_intensity = max(0.0, player.shake_intensity - decay_step)

    def intensity(self, player_id: str) -> float:
        player = self.players.get(player_id)
        return player.shake_intensity if player else 0.0

    def delete(self, player_id: str) -> None:
        self.players.pop(player_id, None)

    def clear(self) -> None:
        self.players.clear()
