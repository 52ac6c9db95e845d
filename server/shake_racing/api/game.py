"""Read-only game state endpoints."""

from fastapi import APIRouter, Request

from shake_racing.rate_limit import SNAPSHOT_LIMIT, limiter
from shake_racing.schemas import StateSnapshot, build_snapshot

router = APIRouter()


@router.get("/state", response_model=StateSnapshot, response_model_by_alias=True)
@limiter.limit(SNAPSHOT_LIMIT)
async def get_state(request: Request) -> StateSnapshot:
    """Current game snapshot, same shape as the WebSocket game_state payload."""
    return build_snapshot(request.app.state.game)
