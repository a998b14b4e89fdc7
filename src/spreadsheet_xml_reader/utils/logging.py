"""Structured logging utilities for the spreadsheet XML reader.

This module provides:
- Load ID tracking using contextvars to correlate every line of one load
- Structured logging with consistent format and metadata
- Load metrics collection around timed operations

Usage:
    from spreadsheet_xml_reader.utils.logging import (
        get_logger,
        LogContext,
        timed_operation,
    )

    logger = get_logger(__name__)

    with LogContext(load_id="abc-123", source="report.xml"):
        logger.info("Loading worksheet", sheet="Sheet1")

    with timed_operation(logger, "load") as metrics:
        metrics.cells_loaded += 1
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Parent of every module logger in the package
PACKAGE_LOGGER_NAME = "spreadsheet_xml_reader"

# Context variables for load tracking
_load_id_var: ContextVar[str | None] = ContextVar("load_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_load_id() -> str | None:
    """Get the current load ID from context.

    Returns:
        The current load ID or None if not set.
    """
    return _load_id_var.get()


def set_load_id(load_id: str | None) -> None:
    """Set the load ID in context.

    Args:
        load_id: The load ID to set, or None to clear.
    """
    _load_id_var.set(load_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars."""
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars."""
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _load_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class LoadMetrics:
    """Counters collected while a document is being read.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        sheets_loaded: Number of worksheets materialized.
        cells_loaded: Number of cells that received a value.
        styles_resolved: Number of entries in the style table.
        merges_registered: Number of merge regions registered.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_loaded: int = 0
    cells_loaded: int = 0
    styles_resolved: int = 0
    merges_registered: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging, skipping zero counters."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.sheets_loaded > 0:
            result["sheets_loaded"] = self.sheets_loaded
        if self.cells_loaded > 0:
            result["cells_loaded"] = self.cells_loaded
        if self.styles_resolved > 0:
            result["styles_resolved"] = self.styles_resolved
        if self.merges_registered > 0:
            result["merges_registered"] = self.merges_registered
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that prefixes messages with the active load context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        prefix_parts = []
        load_id = get_load_id()
        if load_id:
            prefix_parts.append(f"load_id={load_id}")

        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Thin wrapper over a standard logger that renders keyword arguments.

    ``logger.info("Loaded", sheets=2)`` is emitted as ``Loaded | sheets=2``.
    """

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def is_enabled_for(self, level: int) -> bool:
        """Check whether messages at ``level`` would be emitted."""
        return self._logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: LoadMetrics) -> None:
        """Log load metrics.

        Args:
            metrics: Metrics to log.
        """
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(load_id="123", source="book.xml"):
            logger.info("Parsing...")  # Will include load_id and source
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_load_id: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_load_id = get_load_id()

        new_context = dict(self._new_context)
        load_id = new_context.pop("load_id", None)
        if load_id is not None:
            set_load_id(load_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_load_id(self._old_load_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[LoadMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "load") as metrics:
            metrics.sheets_loaded = 3

        # Logs: "Performance: load | operation=load, duration_seconds=..."

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        LoadMetrics instance for tracking.
    """
    metrics = LoadMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure logging for an application embedding the reader.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def set_package_log_level(level: int | str, debug: bool = False) -> None:
    """Set the level of the reader's own loggers.

    Unlike ``configure_logging`` this leaves the root logger and its handlers
    alone, so it is safe to call from library code.

    Args:
        level: Log level (int or string like "INFO").
        debug: Force DEBUG, enabling the per-worksheet and per-cell lines.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(logging.DEBUG if debug else level)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Loaded spreadsheet", sheets=3, cells=120)
    """
    return StructuredLogger(name)
