"""Shake Racing - team shake-to-race party game server."""

__version__ = "0.1.0"
