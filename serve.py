#!/usr/bin/env python3
"""
Deal Quality Index Engine - API Server

Run this script to start the DQI API (web/app.py) under uvicorn.

Usage:
    python serve.py [--port PORT] [--host HOST] [--reload]

Example:
    python serve.py --port 8080
"""

import argparse
import logging

import uvicorn

from dqi_engine.config import EngineConfig


def main():
    parser = argparse.ArgumentParser(
        description="Deal Quality Index Engine - API Server"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)"
    )
    parser.add_argument(
        "--host", "-H",
        type=str,
        default="localhost",
        help="Host to bind to (default: localhost)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)"
    )

    args = parser.parse_args()

    config = EngineConfig.load()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
