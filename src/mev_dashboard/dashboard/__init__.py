"""Dashboard module exposing the engine over HTTP and WebSocket."""

from mev_dashboard.dashboard.server import create_app, main


__all__ = [
    "create_app",
    "main",
]
