"""structlog configuration for tracelink.

Library modules only call ``structlog.get_logger(__name__)``; the host
application decides on output by calling configure_logging once.

Example:
    >>> from tracelink.logging import configure_logging
    >>> configure_logging(log_level="DEBUG", json_output=True)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from tracelink.config import TraceSettings

LOG_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
) -> None:
    """Configure structlog processors, level filtering and rendering.

    Args:
        log_level: The minimum log level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output logs as JSON. If False, use console format.

    Raises:
        ValueError: If log_level is not a known level name.
    """
    level = LOG_LEVELS.get(log_level.upper())
    if level is None:
        msg = f"Unknown log level '{log_level}', expected one of {sorted(LOG_LEVELS)}"
        raise ValueError(msg)

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: TraceSettings) -> None:
    """Apply ``log_level`` and ``json_logs`` from settings."""
    configure_logging(log_level=settings.log_level, json_output=settings.json_logs)


__all__ = ["LOG_LEVELS", "configure_from_settings", "configure_logging"]
