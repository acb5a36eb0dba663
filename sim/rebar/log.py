"""Logging configuration for the simulator and its CLI."""

import logging
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure package logging.

    Level falls back to the ``REBAR_LOG_LEVEL`` environment variable, then WARNING.
    """
    raw_level = level if level is not None else os.getenv("REBAR_LOG_LEVEL")
    resolved_level = (raw_level or "WARNING").upper()
    logging.basicConfig(level=resolved_level, format=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)

    app_logger = logging.getLogger("rebar")
    app_logger.setLevel(resolved_level)
    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
