"""Logging configuration for the application."""
import logging
import sys
from typing import Optional

from hitstats.config import settings


def resolve_log_level(environment: str, override: Optional[str] = None) -> int:
    """
    Pick the service log level.

    An explicit level name wins; otherwise development logs at DEBUG (cookie
    upgrades and per-batch details) and every other environment at INFO.

    Raises:
        ValueError: If the override is not a known level name
    """
    if override:
        level = logging.getLevelName(override.strip().upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {override}")
        return level
    return logging.DEBUG if environment == "development" else logging.INFO


level = resolve_log_level(settings.environment, settings.log_level)

# Ingest and stats messages go to one stdout stream
logger = logging.getLogger("hitstats")
logger.setLevel(level)

handler = logging.StreamHandler(sys.stdout)
handler.setLevel(level)
handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
))

if not logger.handlers:
    logger.addHandler(handler)

logger.propagate = False

__all__ = ["logger", "resolve_log_level"]
