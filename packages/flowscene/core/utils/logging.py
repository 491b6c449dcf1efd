"""Logging configuration utilities for FlowScene.

The compiler itself only ever calls ``logging.getLogger(__name__)``; this
module is where a host process (the CLI, a render worker) decides where
those records go and how they look:

- stdout or file output
- plain text or structured JSON records
- context-carrying loggers via LoggerAdapter
- timing of hot functions on a dedicated performance logger
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
import functools
import json
import logging
import sys
import time
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

PERFORMANCE_LOGGER_NAME = "FLOWSCENE_PERF"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

F = TypeVar("F", bound=Callable[..., Any])

# LogRecord attributes that are never copied into the JSON context block.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class StructuredJSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record.

    Shape::

        {
            "level": "INFO",
            "message": "Compiled graph: 3 objects, 2 tracks",
            "timestamp": "2026-01-29T12:00:00+00:00",
            "context": {"logger_name": "...", "module": "...", ...}
        }

    Anything passed through ``extra=`` or a LoggerAdapter lands in ``context``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as a JSON line.

        Args:
            record: Record to format.

        Returns:
            JSON string for the record.
        """
        context: dict[str, Any] = {
            "logger_name": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            context["error_type"] = exc_type.__name__ if exc_type else None
            context["error_message"] = str(exc_value) if exc_value else None
            context["stack_trace"] = record.exc_text or self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_ATTRS or key.startswith("_"):
                continue
            context[key] = value

        entry = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "context": context,
        }
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    filename: str | None = None,
    structured: bool = False,
) -> None:
    """Configure process-wide logging.

    Safe to call repeatedly; each call replaces the root handlers.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case.
        format_string: Text format. Ignored when ``structured`` is True.
        filename: Log file path. Logs go to stdout when None.
        structured: Emit JSON records instead of text.

    Examples:
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(level="INFO", structured=True, filename="compile.jsonl")
    """
    handler: logging.Handler
    if filename:
        handler = logging.FileHandler(filename)
    else:
        handler = logging.StreamHandler(sys.stdout)

    formatter: logging.Formatter
    if structured:
        formatter = StructuredJSONFormatter()
    else:
        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )


def get_performance_logger() -> logging.Logger:
    """Get the logger used by ``log_performance``."""
    return logging.getLogger(PERFORMANCE_LOGGER_NAME)


def get_logger(name: str, **kwargs: Any) -> logging.Logger | logging.LoggerAdapter:
    """Get a logger, optionally bound to context fields.

    Args:
        name: Logger name, usually ``__name__``.
        **kwargs: Context attached to every record (e.g. ``graph_id``, ``batch_key``).

    Returns:
        Plain logger, or a LoggerAdapter when context is given.
    """
    base = logging.getLogger(name)
    if kwargs:
        return logging.LoggerAdapter(base, kwargs)
    return base


def log_performance(func: F) -> F:
    """Decorator logging wall-clock time of each call at DEBUG."""

    @functools.wraps(func)
    def wrapper_timer(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            get_performance_logger().debug("%s took %.4f seconds", func.__qualname__, elapsed)

    return wrapper_timer  # type: ignore[return-value]


__all__ = [
    "DEFAULT_FORMAT",
    "PERFORMANCE_LOGGER_NAME",
    "StructuredJSONFormatter",
    "configure_logging",
    "get_logger",
    "get_performance_logger",
    "log_performance",
]
