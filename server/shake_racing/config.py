"""Application configuration using Pydantic settings.

Simulation and game defaults come from the modules that use them; the
environment (or .env) can override any of them.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from shake_racing.models import GameSettings
from shake_racing.services.player_registry import DECAY_STEP, IDLE_THRESHOLD
from shake_racing.services.race_engine import TICK_SECONDS, TRACK_LENGTH


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]
    static_dir: str = "public"  # Client pages (player, display, admin)

    # Simulation
    tick_interval: float = TICK_SECONDS
    track_length: float = TRACK_LENGTH
    idle_threshold: float = IDLE_THRESHOLD
    decay_step: float = DECAY_STEP

    # Default game settings (admin can change them at runtime)
    num_teams: int = GameSettings.num_teams
    max_players: int = GameSettings.max_players
    min_teams: int = GameSettings.min_teams
    speed_coef: float = GameSettings.speed_coef


settings = Settings()
