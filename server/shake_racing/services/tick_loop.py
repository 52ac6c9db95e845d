"""Background task driving the race simulation at a fixed interval."""

import asyncio
import logging

from shake_racing.schemas import team_to_info
from shake_racing.services.race_engine import GameSession, TickResult
from shake_racing.websocket.manager import ConnectionManager
from shake_racing.websocket.schemas import RaceFinishedMessage, RaceTeamInfo, RaceUpdateMessage

logger = logging.getLogger(__name__)


def build_race_update(result: TickResult) -> RaceUpdateMessage:
    return RaceUpdateMessage(
        teams=[
            RaceTeamInfo(
                id=t.id,
                name=t.name,
                position=t.position,
                shake_intensity=t.shake_intensity,
                player_count=len(t.players),
            )
            for t in result.teams
        ],
        winner=result.winner.id if result.winner else None,
    )


async def run_tick(game: GameSession, connections: ConnectionManager) -> TickResult | None:
    """Advance the game one tick and push the outcome to clients."""
    result = game.tick()
    if result is None:
        return None

    # Serialize before the first await so the payload matches this tick
    update = build_race_update(result).to_json()
    finished = None
    if result.just_finished and result.winner is not None:
        finished = RaceFinishedMessage(winner=team_to_info(result.winner)).to_json()

    await connections.broadcast_to_displays(update)
    if finished is not None:
        await connections.broadcast_to_all(finished)
    return result


async def race_tick_loop(
    game: GameSession,
    connections: ConnectionManager,
    interval: float,
) -> None:
    """Tick forever. Each tick completes before the next one is scheduled."""
    logger.info("Race tick loop started (interval=%.0fms)", interval * 1000)
    loop = asyncio.get_running_loop()
    next_tick = loop.time()
    while True:
        try:
            await run_tick(game, connections)
        except Exception:
            logger.exception("Race tick error")

        # Keep a steady cadence; if we fell behind, start the next tick right away
        next_tick += interval
        delay = next_tick - loop.time()
        if delay < 0:
            next_tick = loop.time()
            delay = 0
        await asyncio.sleep(delay)
