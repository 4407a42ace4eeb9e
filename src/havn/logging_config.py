"""Logging setup for havn."""
from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "havn"
DEFAULT_LEVEL = "WARNING"


def configure_logging(
    level: str | None = None,
    fallback: str | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Attach a rich handler to the havn logger.

    Level precedence: argument, HAVN_LOG_LEVEL, fallback (the configured
    level), then WARNING.
    Calling this again replaces the handler instead of stacking another one.
    """
    level_name = (level or os.getenv("HAVN_LOG_LEVEL") or fallback or DEFAULT_LEVEL).upper()
    resolved = getattr(logging, level_name, None)
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return logger
