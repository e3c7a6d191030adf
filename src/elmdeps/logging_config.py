"""structlog configuration.

Logs go to stderr so stdout stays free for solution JSON.
"""

from __future__ import annotations

import logging
import sys

import structlog

from elmdeps.config import LoggingSettings


def verbosity_to_level(verbosity: int) -> str:
    """Map a ``-v`` count style verbosity to a log level name."""
    if verbosity <= 0:
        return "ERROR"
    if verbosity == 1:
        return "WARNING"
    if verbosity == 2:
        return "INFO"
    return "DEBUG"


def configure_logging(settings: LoggingSettings | None = None) -> None:
    settings = settings or LoggingSettings()
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[settings.level]
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
