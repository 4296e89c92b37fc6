"""Dashboard module for the web API and live event feed."""

from flasharb.dashboard.server import create_app, main


__all__ = [
    "create_app",
    "main",
]
