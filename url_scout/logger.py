# === FILE: url_scout/logger.py ===
"""Logging setup for url_scout.

stdout carries the URL list, so every diagnostic goes to stderr and,
optionally, to a rotating log file. Modules log through the shared
``logger``::

    from url_scout.logger import logger
    logger.info("Fetching %s", host)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

LOGGER_NAME: Final[str] = "UrlScout"
LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024


def init_logging(level: Union[int, str] = "WARNING", log_file: str | Path | None = None) -> logging.Logger:
    """Replace the handlers of the project logger (called once by the CLI)."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(RotatingFileHandler(str(log_file), maxBytes=_MAX_LOG_BYTES, backupCount=3, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        lg.addHandler(handler)

    lg.propagate = False
    return lg


logger: logging.Logger = logging.getLogger(LOGGER_NAME)

__all__ = ["logger", "init_logging", "LOGGER_NAME", "LOG_FORMAT"]
