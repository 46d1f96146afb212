"""
Structured logging for sqld.

sqld never configures logging on import. Applications call
``configure_logging()`` once at startup; library modules only call
``get_logger(__name__)`` and emit events with keyword fields.

Until something calls ``configure_logging()`` (or ``structlog.configure()``),
structlog's defaults apply and every event, debug included, is printed to
stdout. Call ``configure_logging()`` to filter by ``SQLD_LOG_LEVEL``
(``WARNING`` by default), which keeps the per-statement debug events
(``connection_opened``, ``statement_compiled``) quiet.

Architecture:
    ::

        configure_logging(level="DEBUG", json_format=True)
              ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level
          4. add_logger_name
          5. add_service_metadata
          6. JSONRenderer (or ConsoleRenderer when json_format=False)

Examples:
    >>> from sqld.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("statement_compiled", position=42)

Tags:
    logging, structlog, observability, sqld
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "sqld"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


class _NamedPrintLogger(structlog.PrintLogger):
    """PrintLogger that carries the name it was requested under."""

    def __init__(self, name: str, file: Any = None):
        super().__init__(file)
        self.name = name


class _NamedPrintLoggerFactory:
    """Logger factory that passes ``get_logger(name)`` through to the logger."""

    def __init__(self, file: Any = None):
        self._file = file

    def __call__(self, *args: Any) -> _NamedPrintLogger:
        name = args[0] if args and args[0] else _SERVICE_NAME
        return _NamedPrintLogger(name, self._file)


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = "sqld",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); None reads ``SQLD_LOG_LEVEL``
        json_format: True for JSON, False for console, None reads ``SQLD_LOG_JSON``
            and falls back to JSON when stdout is not a tty
        service: Service name included in every event
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if level is None or json_format is None:
        from sqld.settings import get_settings

        settings = get_settings()
        level = level or settings.log_level
        if json_format is None:
            json_format = settings.log_json

    if json_format is None:
        json_format = not sys.stdout.isatty()

    numeric_level = getattr(logging, level.upper())

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
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_NamedPrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
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
        with LogContext(uri=conn.uri, job="nightly-load"):
            req.exec()
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
