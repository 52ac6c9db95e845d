"""Shake Racing - FastAPI Application."""

import argparse
import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shake_racing import __version__
from shake_racing.api import api_router
from shake_racing.config import settings
from shake_racing.models import GameSettings
from shake_racing.rate_limit import limiter
from shake_racing.services.race_engine import GameSession
from shake_racing.services.tick_loop import race_tick_loop
from shake_racing.websocket import ConnectionManager, SessionRouter, handle_game_websocket

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_game_session() -> GameSession:
    """Build the game session from configured defaults."""
    return GameSession(
        GameSettings(
            num_teams=settings.num_teams,
            max_players=settings.max_players,
            min_teams=settings.min_teams,
            speed_coef=settings.speed_coef,
        ),
        tick_seconds=settings.tick_interval,
        track_length=settings.track_length,
        idle_threshold=settings.idle_threshold,
        decay_step=settings.decay_step,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    logger.info("Starting Shake Racing server...")
    tick_task = asyncio.create_task(
        race_tick_loop(app.state.game, app.state.connections, settings.tick_interval)
    )

    yield

    tick_task.cancel()
    try:
        await tick_task
    except asyncio.CancelledError:
        pass
    logger.info("Shutting down Shake Racing server...")


app = FastAPI(
    title="Shake Racing API",
    description="Shake your phone to race your team to the finish line",
    version=__version__,
    lifespan=lifespan,
)

# One game per process, shared by every connection and the tick loop
app.state.game = create_game_session()
app.state.connections = ConnectionManager()
app.state.router = SessionRouter(app.state.game, app.state.connections)

# Store limiter on app state for slowapi
app.state.limiter = limiter


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_middleware(SlowAPIMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["Content-Type"],
)

# Mount API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.websocket("/ws")
async def websocket_game(websocket: WebSocket) -> None:
    """WebSocket endpoint shared by players, displays and admins."""
    await handle_game_websocket(websocket, websocket.app.state.router)


# Client pages; mounted last so API and WebSocket routes take precedence
if Path(settings.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    logger.warning(f"Static directory not found, client pages disabled: {settings.static_dir}")


def main() -> None:
    """Run the server."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Shake Racing Server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    logger.info(f"Server running on http://localhost:{args.port}")

    uvicorn.run(
        "shake_racing.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
