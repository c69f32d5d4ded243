"""Logging helpers."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO", log_file: str = "") -> logging.Logger:
    """Install console (and optional rotating file) handlers on the package logger once."""
    logger = logging.getLogger("factwhisper")
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if not logger.handlers:
        fmt = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        logger.addHandler(console)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
            handler.setFormatter(fmt)
            logger.addHandler(handler)

    return logger
