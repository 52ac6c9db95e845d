"""Request limits for the HTTP API.

Players talk over the WebSocket, so only the read-only snapshot endpoint and
client pages go through the limiter, keyed by the caller's address as seen by
uvicorn.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

SNAPSHOT_LIMIT = "60/minute"

limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])
