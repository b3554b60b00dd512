"""Logging setup for leakyloop.

All log output goes to stderr. The poller owns stdout for its counter and
payload lines, so nothing in this module may write there.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

# aiohttp loggers that report on the ``serve`` side
_AIOHTTP_LOGGERS = ("aiohttp.access", "aiohttp.server", "aiohttp.web")


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter with keys timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(
    level: int = logging.WARNING,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the root leakyloop logger.

    Installs a single stderr handler on the ``leakyloop`` namespace and
    attaches the same handler to aiohttp's server loggers, so ``serve``
    access lines and poller diagnostics share one stream and format.
    stdout is never touched: ``poll`` writes only its counter and payload
    lines there. Repeated calls only update levels; handlers are not
    duplicated.

    Args:
        level: Logging level. Defaults to WARNING so a plain poll run
            prints nothing besides its own lines.
        json_format: If True, emit one JSON object per record.

    Returns:
        The configured ``leakyloop`` logger.
    """
    logger = logging.getLogger("leakyloop")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        for name in _AIOHTTP_LOGGERS:
            logging.getLogger(name).setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    for name in _AIOHTTP_LOGGERS:
        aiohttp_logger = logging.getLogger(name)
        aiohttp_logger.setLevel(level)
        aiohttp_logger.addHandler(handler)
        aiohttp_logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``leakyloop`` namespace.

    Args:
        name: Suffix appended to ``leakyloop.``, e.g. ``"poller.loop"``.

    Returns:
        The child logger.
    """
    return logging.getLogger(f"leakyloop.{name}")
