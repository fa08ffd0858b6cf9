"""
Orthrus Server - FastAPI + WebSocket Server Layer
"""

from orthrus.server.app import app, create_app

__all__ = ["app", "create_app"]
