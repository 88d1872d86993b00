#!/usr/bin/env python3
"""
============================================================================
EWM Stock Lookup v1.0.0
Server Entry Point
============================================================================

Starts the FastAPI application under uvicorn.

ENVIRONMENT VARIABLES:
    - HOST: Bind address (default: 0.0.0.0)
    - PORT: Bind port (default: 4004)
    - LOG_LEVEL: Root log level (default: INFO)

USAGE:
    python main.py

============================================================================
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("EWM-STOCK")


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "4004"))

    logger.info(f"Starting EWM Stock Lookup | host={host} | port={port}")
    uvicorn.run("app.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
