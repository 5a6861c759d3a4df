"""Opt-in logging for streamsketch.

Nothing is printed unless asked for: importing the package only attaches a
NullHandler to the ``streamsketch`` logger. Every sketch module logs under
its own name (``streamsketch.compactor``, ``streamsketch.quantile``, ...) and
only at DEBUG, where it reports compactions, stage cascades, Misra-Gries
decrement rounds and reservoir replacements. On a busy stream that is one
record per event, so narrow DEBUG to the sketches under study with
``enable_sketch_debug``.

Example usage:
    import streamsketch

    streamsketch.enable_console_logging(level="INFO")
    streamsketch.enable_sketch_debug("compactor", "quantile")

    # or drive everything from the environment
    streamsketch.configure_from_env()

Environment variables (read only by configure_from_env):
    SS_LOGGING: Level name for the package logger
    SS_LOG_FILE: Write to this size-rotated file instead of stderr
    SS_LOG_JSON: "1" switches either destination to JSON lines
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "SKETCH_MODULES",
    "JsonFormatter",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "enable_sketch_debug",
    "set_level",
    "set_module_level",
]

LOGGER_NAME = "streamsketch"

# Submodules that emit records
SKETCH_MODULES = (
    "analysis",
    "bloom_filter",
    "compactor",
    "count_min",
    "misra_gries",
    "quantile",
)

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "DEBUG",
         "logger": "streamsketch.compactor",
         "message": "Linear relative compaction: 144 -> 78 items"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    """Map a level name (any case) or number to a logging constant; INFO if unknown."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, level: LogLevel | int) -> None:
    numeric = _get_level(level)
    handler.setLevel(numeric)
    logger = _get_logger()
    logger.setLevel(numeric)
    logger.addHandler(handler)


def _rotating_handler(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def _clear_handlers() -> None:
    """Detach and close every real handler, leaving NullHandlers in place."""
    logger = _get_logger()
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            continue
        logger.removeHandler(handler)
        handler.close()


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Send package records to stderr and return the handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format, date_format))
    _attach(handler, level)
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Send package records to a size-rotated file.

    Args:
        path: Log file; missing parent directories are created.
        level: Level for both the handler and the package logger.
        max_bytes: File size that triggers a rollover.
        backup_count: Rolled-over files kept alongside the live one.
        format: Record format string.
        date_format: Format for %(asctime)s.

    Returns:
        The attached RotatingFileHandler.
    """
    handler = _rotating_handler(path, max_bytes, backup_count)
    handler.setFormatter(logging.Formatter(format, date_format))
    _attach(handler, level)
    return handler


def enable_json_logging(
    level: LogLevel | int = "INFO",
    path: str | Path | None = None,
) -> logging.Handler:
    """Emit JSON lines to stderr, or to a size-rotated file when ``path`` is set."""
    if path is None:
        handler: logging.Handler = logging.StreamHandler()
    else:
        handler = _rotating_handler(path, DEFAULT_MAX_BYTES, DEFAULT_BACKUP_COUNT)
    handler.setFormatter(JsonFormatter())
    _attach(handler, level)
    return handler


def enable_sketch_debug(*sketches: str) -> list[str]:
    """Turn on DEBUG records for selected sketch modules.

    Only the named submodule loggers are lowered to DEBUG; the rest of the
    package keeps its level. Handlers also filter by level, so pair this with
    a handler enabled at DEBUG to see the records.

    Args:
        *sketches: Submodule names from SKETCH_MODULES, e.g. ``"compactor"``.
            With none given, every sketch module is enabled.

    Returns:
        The full logger names that were changed.

    Raises:
        ValueError: If a name is not one of SKETCH_MODULES.
    """
    unknown = [name for name in sketches if name not in SKETCH_MODULES]
    if unknown:
        raise ValueError(f"unknown sketch modules {unknown}; expected any of {list(SKETCH_MODULES)}")

    names = [f"{LOGGER_NAME}.{name}" for name in (sketches or SKETCH_MODULES)]
    for name in names:
        logging.getLogger(name).setLevel(logging.DEBUG)
    return names


def configure_from_env() -> None:
    """Apply SS_LOGGING, SS_LOG_FILE and SS_LOG_JSON.

    A file alone implies INFO. With neither a level nor a file set, this is a
    no-op.
    """
    level = os.environ.get("SS_LOGGING", "").upper()
    log_file = os.environ.get("SS_LOG_FILE", "")
    as_json = os.environ.get("SS_LOG_JSON", "") == "1"

    if not (level or log_file):
        return
    level = level or "INFO"

    if as_json:
        enable_json_logging(level=level, path=log_file or None)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Change the package logger's level without touching handlers."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Change one submodule's level, e.g. ``set_module_level("quantile", "WARNING")``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Drop every handler and raise the package logger above CRITICAL."""
    _clear_handlers()
    logger = _get_logger()
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
