from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from core.settings import LOGGING


def get_logger(name: str) -> logging.Logger:
    """Return ``dailynudge.<name>`` with a rotating file handler attached once."""

    logger = logging.getLogger(f"dailynudge.{name}")
    if not logger.handlers:
        LOGGING.directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOGGING.directory / f"{name}.log",
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOGGING.fmt))
        logger.addHandler(handler)
    logger.setLevel(LOGGING.level)
    return logger


__all__ = ["get_logger"]
