"""Test configuration and fixtures."""

import os

# Set test environment variables BEFORE importing app modules
os.environ["STATIC_DIR"] = "./nonexistent-static"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from shake_racing.main import app
from shake_racing.models import GameSettings
from shake_racing.rate_limit import limiter
from shake_racing.services.race_engine import GameSession
from shake_racing.websocket import ConnectionManager, SessionRouter


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def game_settings() -> GameSettings:
    return GameSettings(num_teams=3, max_players=2, min_teams=1)


@pytest.fixture
def game(game_settings, clock) -> GameSession:
    return GameSession(game_settings, clock=clock)


@pytest.fixture
def connections() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def router(game, connections) -> SessionRouter:
    return SessionRouter(game, connections)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter state between tests to avoid cross-test pollution."""
    limiter.reset()
    yield


@pytest.fixture(scope="function")
def client():
    """Create test client backed by a fresh game session."""
    game = GameSession(GameSettings(num_teams=2, max_players=1, min_teams=1))
    connections = ConnectionManager()
    app.state.game = game
    app.state.connections = connections
    app.state.router = SessionRouter(game, connections)
    with TestClient(app) as test_client:
        yield test_client
