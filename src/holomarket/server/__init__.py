"""HTTP and WebSocket surface for the market service."""

from holomarket.server.app import create_app

__all__ = ["create_app"]
