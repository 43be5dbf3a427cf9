#!/usr/bin/env python3
"""
Logging configuration for the Chapel language server.

The server speaks the protocol over stdout, so log records only ever go to a
file sink.
"""

from loguru import logger

DEFAULT_LOG_FILE = "./chapel_lsp_logs.log"

# Accepted --logging values mapped to loguru levels
LOG_LEVELS = {
    "none": None,
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
}


def setup_logging(log_level: str = "none", log_file: str = DEFAULT_LOG_FILE) -> None:
    """
    Set up logging configuration using loguru.

    Args:
        log_level: One of none, debug, info, warn, error. Unknown values
            behave like none.
        log_file: File receiving JSON-serialized records
    """
    # Remove default logger
    logger.remove()

    level = LOG_LEVELS.get(log_level.lower())
    if level is None:
        return

    logger.add(
        log_file,
        rotation="10 MB",
        retention="1 week",
        level=level,
        serialize=True,
    )
    logger.info("Logging initialized")
