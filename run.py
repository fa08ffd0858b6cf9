#!/usr/bin/env python3
"""
Orthrus - Server Startup Script

Usage:
    python run.py [--host HOST] [--port PORT] [--reload]

Table settings come from ORTHRUS_* environment variables.
"""

import argparse
import os
import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Orthrus Poker Table Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 3000)), help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    uvicorn.run(
        "orthrus.server.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
