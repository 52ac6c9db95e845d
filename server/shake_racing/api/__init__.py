"""API routes aggregation."""

from fastapi import APIRouter

from shake_racing.api.game import router as game_router

api_router = APIRouter()

api_router.include_router(game_router, tags=["game"])
