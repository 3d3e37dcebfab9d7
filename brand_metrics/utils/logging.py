"""
Structured JSON logging for Brand Metrics.

Provides standardized logging with:
- JSON formatted output to stderr
- UTC timestamps with timezone info
- Structured context fields
- Component-based logger creation

Library modules only call logging.getLogger(__name__); nothing is configured
until the CLI (or an embedding application) calls setup_logging(). Log level
defaults to INFO, use setup_logging(verbose=True) for DEBUG.

Examples:
    >>> from brand_metrics.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbose=True)
    >>> logger = get_logger("brand_metrics.aggregator")
    >>> logger.info("Scope aggregated", extra={"context": {"brands": 5}})
"""

import json
import logging
import sys
from typing import Any

from brand_metrics.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records as JSON objects.

    Each log record is formatted as a JSON object with:
    - timestamp: ISO 8601 UTC timestamp
    - level: Log level (INFO, WARNING, ERROR, DEBUG)
    - component: Module/component name (from logger name)
    - message: Human-readable log message
    - context: Additional structured data (from 'context' in extra)
    - batch_id: Batch identifier (from 'batch_id' in extra, if available)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and isinstance(record.context, dict):
            log_entry["context"] = record.context

        if hasattr(record, "batch_id"):
            log_entry["batch_id"] = record.batch_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # default=str keeps datetimes and other values from breaking a log line
        return json.dumps(log_entry, default=str)


def setup_logging(verbose: bool = False, quiet_logs: bool = False) -> None:
    """
    Configure structured JSON logging on the root logger.

    Sets up:
    - JSON formatter for structured output
    - stderr output (stdout reserved for command output)
    - Log level: DEBUG if verbose=True, WARNING if quiet_logs=True, INFO otherwise

    Args:
        verbose: If True, set log level to DEBUG (overrides quiet_logs)
        quiet_logs: If True, only log warnings and errors (keeps Rich output clean)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet_logs:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers (prevents duplicate logs)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())

    root_logger.addHandler(handler)


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        component: Component name (e.g., "brand_metrics.extractor.parser")

    Returns:
        Logger instance sharing the configuration from setup_logging()
    """
    return logging.getLogger(component)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    batch_id: str | None = None,
) -> None:
    """
    Log a message with structured context and optional batch_id.

    Equivalent to logger.log(level, message, extra={'context': {...}, 'batch_id': '...'})

    Example:
        >>> logger = get_logger("brand_metrics.extractor.batch")
        >>> log_with_context(
        ...     logger,
        ...     logging.INFO,
        ...     "Batch extraction completed",
        ...     context={"responses": 150, "workers": 8},
        ...     batch_id="responses.jsonl",
        ... )
    """
    extra = {}

    if context is not None:
        extra["context"] = context

    if batch_id is not None:
        extra["batch_id"] = batch_id

    logger.log(level, message, extra=extra if extra else None)
