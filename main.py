#!/usr/bin/env python3
"""
Zodiac Predictor entrypoint

Loads .env, then serves zodiac_predictor.api:app with uvicorn.
Environment: HOST, PORT, LOG_LEVEL.
"""
import os
import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from zodiac_predictor.api import app  # noqa: E402

UVICORN_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def run():
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").lower()
    if log_level not in UVICORN_LEVELS:
        log_level = "info"
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())

    try:
        port = int(os.getenv("PORT", "8000"))
    except ValueError:
        logger.warning(f"Invalid PORT value {os.getenv('PORT')!r}, falling back to 8000")
        port = 8000

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port, log_level=log_level)


if __name__ == "__main__":
    run()
