"""Logging setup for treels.

Modules log through ``structlog.get_logger(__name__)``. ``configure_logging``
points every logger at stderr so diagnostics never mix with listing output.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from typing import TextIO

import structlog

DEFAULT_LOG_LEVEL = "warning"


def _log_level_from_string(level: str | None) -> int:
    """Resolve a log level name, honouring ``TREELS_DEBUG`` and ``TREELS_LOG_LEVEL``.

    Precedence: ``TREELS_DEBUG`` (forces DEBUG), then ``level``, then
    ``TREELS_LOG_LEVEL``, then WARNING. Unknown names fall back to WARNING.
    """
    if getenv("TREELS_DEBUG", None):
        return logging.DEBUG
    name = level or getenv("TREELS_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(name.upper(), logging.WARNING)


def configure_logging(level: str | None = None, *, stream: TextIO | None = None) -> int:
    """Configure structlog globally and return the effective level."""
    effective_level = _log_level_from_string(level)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(effective_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )
    return effective_level


__all__ = ["DEFAULT_LOG_LEVEL", "configure_logging"]
