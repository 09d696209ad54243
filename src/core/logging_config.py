"""Structured logging configuration.

This module initializes structlog with a stable JSON event format
written to stderr. All Strata modules obtain their logger through
``get_logger``; the first call applies the default configuration unless
``configure_logging`` ran before.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.errors import StrataConfigError

_LOG_LEVELS = ("debug", "info", "warning", "error")
_configured = False


def configure_logging(level: str = "info") -> None:
    """Configure structlog output and the minimum event level.

    Args:
        level: One of debug, info, warning or error.

    Raises:
        StrataConfigError: If the level name is unknown.
    """
    global _configured
    normalized = level.strip().lower()
    if normalized not in _LOG_LEVELS:
        raise StrataConfigError(
            f"Unsupported log level '{level}'. Use one of: {', '.join(_LOG_LEVELS)}."
        )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, normalized.upper())
        ),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    _configured = True


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolved per event; stdout carries command output.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
