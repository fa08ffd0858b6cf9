"""
FastAPI Application Entry Point for Orthrus.

This module creates and configures the FastAPI application with:
- One Table owned by the application (``app.state.room``)
- HTTP routes for state and host controls
- WebSocket endpoint for real-time communication
- Static file serving for the host/player pages
- CORS middleware for development
"""

import os
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware

from orthrus import __version__
from orthrus.core.audit import AuditLog
from orthrus.core.rules import TableConfig
from orthrus.core.table import Table
from orthrus.server.routes import router
from orthrus.server.websocket import TableRoom, websocket_endpoint

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config: Optional[TableConfig] = None, table: Optional[Table] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Table settings, read from the environment when omitted
        table: Pre-built table (tests inject one with a manual scheduler)

    Returns:
        Configured FastAPI application instance
    """
    if table is None:
        config = config or TableConfig.from_env()
        table = Table(config, audit=AuditLog(config.log_dir))

    app = FastAPI(
        title="Orthrus Poker Table",
        description="Shared Texas Hold'em table with WebSocket API",
        version=__version__,
    )
    app.state.room = TableRoom(table)

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include HTTP routes
    app.include_router(router)

    # WebSocket endpoint
    app.websocket("/ws")(websocket_endpoint)

    # Mount static files last so the routes above take precedence
    static_dir = os.environ.get(
        "ORTHRUS_PUBLIC_DIR",
        os.path.join(os.path.dirname(__file__), "..", "..", "public"),
    )
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="public")
        logger.info(f"Mounted static files from {static_dir}")
    else:
        logger.warning(f"Static directory not found: {static_dir}")

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"Orthrus table starting: {table.config.table_max} seats, "
            f"blinds {table.config.small_blind}/{table.config.big_blind}"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        table.cancel_timers()
        logger.info("Orthrus table shutting down...")

    return app


# Create the application instance
app = create_app()
