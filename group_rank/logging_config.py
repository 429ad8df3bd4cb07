"""
Logging for the Group Rank service.

What gets logged where:
- INFO: groups created, matches recorded, and requests rejected with a 4xx.
- WARNING: score cells that could not be read, and versioned writes that lost
  to a concurrent update and were retried.
- ERROR: sheet store failures and malformed rows, with the sheet and row number.
  Clients only ever see a generic 500 message.
- DEBUG: every sheet read and write with its row count and version.

The level comes from LOG_LEVEL (DEBUG|INFO|WARNING|ERROR|CRITICAL) or from the
`level` argument. Test mode and DEBUG use a verbose format with the logger
name, line and function. Outside DEBUG, uvicorn's per-request access log and
aiosqlite's worker thread are kept at WARNING.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Literal, Optional

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _level_from_name(name: str) -> int:
    return _LEVELS.get(name.upper(), logging.INFO)


def _level_from_env(default: LogLevel = "INFO") -> int:
    return _level_from_name(os.getenv("LOG_LEVEL", default))


def setup_logging(level: Optional[LogLevel] = None, mode: Optional[Literal["test", "prod"]] = None) -> None:
    """Configure root logger.

    Args:
        level: Optional string level (e.g., "DEBUG"). If omitted, uses LOG_LEVEL env var or INFO.
        mode: Optional mode hint ("test"|"prod") to tweak formatting; defaults based on level.
    """
    numeric_level = _level_from_env() if level is None else _level_from_name(level)

    # Avoid duplicate handlers if re-configuring
    root = logging.getLogger()
    if root.handlers:
        for h in list(root.handlers):
            root.removeHandler(h)

    is_debug = numeric_level <= logging.DEBUG
    fmt_verbose = (
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"
    )
    fmt_concise = "%(asctime)s %(levelname).1s %(name)s: %(message)s"
    fmt = fmt_verbose if (mode == "test" or is_debug) else fmt_concise

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%H:%M:%S"))

    root.setLevel(numeric_level)
    root.addHandler(handler)

    # Access logs and the sqlite worker thread are noisy outside full debug
    logging.getLogger("aiosqlite").setLevel(logging.INFO if is_debug else logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO if is_debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper to get a module logger."""
    return logging.getLogger(name)
