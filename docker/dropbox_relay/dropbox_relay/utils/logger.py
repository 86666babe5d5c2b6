"""Package logger for the relay.

Every module logs through the "dropbox-relay" logger. It writes to stdout and
does not propagate, so uvicorn's handlers never repeat its lines.
"""

import logging
import os
import sys
from collections.abc import Mapping

LOGGER_NAME = "dropbox-relay"
LOG_FORMAT = "%(levelname)s - %(message)s"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def level_from_env(environ: Mapping[str, str]) -> int:
    """Startup level: DEBUG_MODE=true, else LOGLEVEL, else INFO."""
    if environ.get("DEBUG_MODE", "false") == "true":
        return logging.DEBUG
    return LOG_LEVELS.get(environ.get("LOGLEVEL", "info").lower(), logging.INFO)


def set_log_level(level_name: str) -> None:
    """Apply a --log-level name to the relay logger and its handlers.

    Args:
        level_name: One of the LOG_LEVELS names, case-insensitive

    Raises:
        ValueError: If the name is not a known level.
    """
    level = LOG_LEVELS.get(level_name.lower())
    if level is None:
        raise ValueError(f"Unknown log level: {level_name}")

    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    logger.debug("Relay logger level set to %s", logging.getLevelName(level))


def _build_logger(level: int) -> logging.Logger:
    relay_logger = logging.getLogger(LOGGER_NAME)
    relay_logger.setLevel(level)
    relay_logger.propagate = False

    # Re-imports must not stack a second stdout handler
    if not relay_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        relay_logger.addHandler(handler)
    for handler in relay_logger.handlers:
        handler.setLevel(level)

    return relay_logger


logger = _build_logger(level_from_env(os.environ))
