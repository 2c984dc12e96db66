"""Loguru logging configuration.

Logs go to stderr as text, or as JSON lines when ``log_json`` is set. With a
``log_dir`` two rotating files are added: ``places-api.log`` gets every
record, and ``place-cache.log`` gets only the place cache's decisions (hits,
misses, stale fallbacks, write-backs and background refreshes).
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"

PLACE_CACHE_LOGGER_PREFIX = "places_api.lib.places"


def is_place_cache_record(record: dict) -> bool:
    """Whether a log record was emitted by the place cache package."""
    name = record["name"] or ""
    return name == PLACE_CACHE_LOGGER_PREFIX or name.startswith(f"{PLACE_CACHE_LOGGER_PREFIX}.")


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, rotating
            file sinks are added (rotated every 24 hours, retained 7 days).
        json_logs: Serialize stderr records as JSON lines instead of text.
    """
    level = log_level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_LOG_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "places-api.log",
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
        logger.add(
            log_path / "place-cache.log",
            level=level,
            format=_LOG_FORMAT,
            filter=is_place_cache_record,
            rotation="24h",
            retention="7 days",
        )
