"""
docmigrate Logging - structured logging plus the run log sink.

Two kinds of logging meet in a migration run:

- **Structured logs** (structlog) emitted by docmigrate's own modules:
  ``logger.info("runner.migration_applied", version=3)``.
- **The run log** handed to migrations and written by the runner: a
  format-string sink with ``write_information`` / ``write_warning`` /
  ``write_error``. ``StructlogLogger`` bridges it onto structlog;
  ``NullLogger`` discards everything and is the default.

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=None,          │
        │                   service="docmigrate")                    │
        │     ↓                                                      │
        │ structlog processor chain:                                 │
        │   1. TimeStamper(iso)                                      │
        │   2. merge_contextvars                                     │
        │   3. add_log_level / add_logger_name                       │
        │   4. add_service_metadata                                  │
        │   5. JSONRenderer (or ConsoleRenderer on a TTY)            │
        └────────────────────────────────────────────────────────────┘

        Run log bridge:
        ┌────────────────────────────────────────────────────────────┐
        │ StructlogLogger().write_information("{0}: Up started", n)  │
        │     ↓                                                      │
        │ get_logger("docmigrate.run").info("Add_Index: Up started") │
        └────────────────────────────────────────────────────────────┘

Examples:
    >>> from docmigrate.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("discovery.started", sources=2)

Tags:
    logging, structlog, observability, run-log, docmigrate

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "docmigrate"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "docmigrate",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(run_id="abc123", direction="up"):
            logger.info("runner.started")
        # Context cleared here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


# ---------------------------------------------------------------------------
# Run log sinks
# ---------------------------------------------------------------------------


def format_message(fmt: str, args: tuple[Any, ...]) -> str:
    """Apply ``str.format`` placeholders; a format without args is returned as-is."""
    if not args:
        return fmt
    return fmt.format(*args)


class NullLogger:
    """Run log sink that discards every message."""

    def write_information(self, fmt: str, *args: Any) -> None:
        pass

    def write_error(self, fmt: str, *args: Any) -> None:
        pass

    def write_warning(self, fmt: str, *args: Any) -> None:
        pass


class StructlogLogger:
    """Run log sink that forwards formatted messages to structlog."""

    def __init__(self, name: str = "docmigrate.run", **context: Any):
        self._log = get_logger(name)
        if context:
            self._log = self._log.bind(**context)

    def write_information(self, fmt: str, *args: Any) -> None:
        self._log.info(format_message(fmt, args))

    def write_error(self, fmt: str, *args: Any) -> None:
        self._log.error(format_message(fmt, args))

    def write_warning(self, fmt: str, *args: Any) -> None:
        self._log.warning(format_message(fmt, args))


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "format_message",
    "LogContext",
    "NullLogger",
    "StructlogLogger",
]
