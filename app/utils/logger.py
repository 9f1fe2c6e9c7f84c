# app/utils/logger.py
"""
Centralised logging for the front-desk backend.
Console output plus a rotating file under logs/ so the day's check-ins and
check-outs can be reconciled after the fact.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = os.path.join(LOG_DIR, "parking.log")

# Libraries that are chatty at INFO and drown out desk activity
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "urllib3")

_configured = False


def _build_handlers(fmt: logging.Formatter) -> list[logging.Handler]:
    console = logging.StreamHandler()
    console.setFormatter(fmt)

    os.makedirs(LOG_DIR, exist_ok=True)
    # Keeps last 10 × 5MB files
    rotating = RotatingFileHandler(
        filename=LOG_FILE,
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    rotating.setFormatter(fmt)

    for handler in (console, rotating):
        handler.setLevel(LOG_LEVEL)
    return [console, rotating]


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in _build_handlers(fmt):
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
