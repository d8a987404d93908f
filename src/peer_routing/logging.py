"""Structured logging for peer_routing.

This module configures structlog on top of the standard library. Output
defaults to a console renderer; set ``PEER_ROUTING_LOG_JSON_OUTPUT=true``
for one JSON object per line.
"""

import logging
import sys
from collections.abc import Sequence
from typing import Any

import structlog

from peer_routing.config import LoggingSettings

__all__ = [
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
    quiet_loggers: Sequence[str] = (),
) -> None:
    """Configure structlog for the application.

    Args:
        level: Logging level as a number or name (default: INFO)
        json_output: If True, output JSON; if False, pretty console output
        add_timestamp: If True, add ISO timestamp to log entries
        quiet_loggers: Stdlib logger names capped at WARNING
    """
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        shared.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    renderer: list[Any]
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        ]

    structlog.configure(
        processors=shared + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_resolve_level(level))
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: LoggingSettings | None = None) -> None:
    """Configure logging from settings (default: loaded from environment)."""
    settings = settings or LoggingSettings()
    configure_logging(
        level=settings.level,
        json_output=settings.json_output,
        add_timestamp=settings.add_timestamp,
        quiet_loggers=settings.quiet_loggers,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)


_configured = False


def _ensure_configured() -> None:
    global _configured
    if not _configured:
        configure_from_settings()
        _configured = True


_ensure_configured()
