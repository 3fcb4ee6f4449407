"""Structured logging for the booking client using structlog.

JSON output for unattended runs, console output for the terminal. Events
go to stderr by default so a CLI can print tables and messages on stdout.
The acting profile is carried as context: call bind_identity() once a
page knows who it acts for and every later event carries user_id and
child_id.
"""

import logging
import sys
from typing import IO

import structlog

from src.prokick.identity import Identity

# Chatty HTTP loggers, shown only at DEBUG
_TRANSPORT_LOGGERS = ("urllib3", "requests")


def setup_logging(json_output: bool = False, log_level: str = "INFO", *, stream: IO[str] | None = None) -> None:
    """Configure structlog with appropriate processors and output format.

    Args:
        json_output: If True, output JSON. If False, console format.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Where events are written. Defaults to stderr.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    out = stream if stream is not None else sys.stderr

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=out.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(out)]
    root.setLevel(numeric_level)
    transport_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


def bind_identity(identity: Identity) -> None:
    """Attach the acting profile to every event logged from here on."""
    structlog.contextvars.bind_contextvars(user_id=identity.user_id, child_id=identity.child_id)


def clear_identity() -> None:
    structlog.contextvars.unbind_contextvars("user_id", "child_id")


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
