from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "cmus_notify"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_logger = logging.getLogger(LOGGER_NAME)


def setup(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stderr handler to the package logger.

    Level resolution order: explicit argument, CMUS_NOTIFY_LOG_LEVEL, WARNING.
    Calling it twice does not stack handlers.
    """
    level_name = (level or os.environ.get("CMUS_NOTIFY_LOG_LEVEL") or "WARNING").upper()
    _logger.setLevel(getattr(logging, level_name, logging.WARNING))

    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        _logger.addHandler(handler)
    return _logger


def debug(msg: str, *args, **kwargs) -> None:
    _logger.debug(msg, *args, **kwargs)


def info(msg: str, *args, **kwargs) -> None:
    _logger.info(msg, *args, **kwargs)


def warning(msg: str, *args, **kwargs) -> None:
    _logger.warning(msg, *args, **kwargs)


def error(msg: str, *args, **kwargs) -> None:
    _logger.error(msg, *args, **kwargs)
