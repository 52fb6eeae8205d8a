"""
Console logging setup.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

_CONFIGURED = False


def configure_logging(level: str | int = "INFO") -> None:
    """Route the package logger through rich. Safe to call more than once."""
    global _CONFIGURED
    logger = logging.getLogger("podcast_search")
    logger.setLevel(level if isinstance(level, int) else level.upper())
    if _CONFIGURED:
        return
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED = True
