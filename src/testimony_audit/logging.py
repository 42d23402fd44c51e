"""Structured logging for testimony-audit.

Provides configurable logging with:
- Verbosity levels mapped onto the stdlib levels
- Text or JSON output, with `extra=` context appended
- Optional file handler for audit runs
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "testimony_audit"

# Attributes every LogRecord carries; anything else came in via `extra=`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


class LogLevel(IntEnum):
    """Log verbosity levels."""

    QUIET = 0  # Only errors
    NORMAL = 1  # Errors + warnings
    VERBOSE = 2  # Errors + warnings + info
    DEBUG = 3  # Everything including debug


_LEVEL_MAP = {
    LogLevel.QUIET: logging.ERROR,
    LogLevel.NORMAL: logging.WARNING,
    LogLevel.VERBOSE: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


@dataclass
class LogConfig:
    """Configuration for logging.

    Attributes:
        level: Verbosity level
        log_file: Optional path to log file
        json_format: Use JSON format for logs
        include_timestamp: Include timestamp in logs
        include_context: Include context dict in logs
        color: Use colored output (console only)
    """

    level: LogLevel = LogLevel.NORMAL
    log_file: Path | None = None
    json_format: bool = False
    include_timestamp: bool = True
    include_context: bool = True
    color: bool = True


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured log records."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.RED,
    }

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_context: bool = True,
        color: bool = True,
    ):
        super().__init__()
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_context = include_context
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        if self.json_format:
            return self._format_json(record)
        return self._format_text(record)

    def _format_json(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.include_timestamp:
            data["timestamp"] = datetime.fromtimestamp(record.created).isoformat()

        if self.include_context:
            extra = {}
            for key, value in _extra_fields(record).items():
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)
            if extra:
                data["context"] = extra

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data)

    def _paint(self, text: str, color: str) -> str:
        if self.color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _format_text(self, record: logging.LogRecord) -> str:
        parts = []

        if self.include_timestamp:
            timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(self._paint(timestamp, Colors.GRAY))

        level = record.levelname.upper()[:5].ljust(5)
        parts.append(self._paint(level, self.LEVEL_COLORS.get(record.levelno, Colors.RESET)))

        # Drop the package prefix, it is on every line
        name = record.name
        if name.startswith(ROOT_LOGGER_NAME + "."):
            name = name[len(ROOT_LOGGER_NAME) + 1:]
        parts.append(self._paint(f"{name:>18}", Colors.CYAN))

        parts.append(record.getMessage())
        result = " | ".join(parts)

        if self.include_context:
            extra = _extra_fields(record)
            if extra:
                context_str = " ".join(f"{k}={v}" for k, v in extra.items())
                result += " " + self._paint(f"[{context_str}]", Colors.GRAY)

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


_config: LogConfig = LogConfig()


def configure_logging(config: LogConfig | None = None) -> None:
    """Configure the `testimony_audit` logger tree.

    Args:
        config: Logging configuration; reuses the last one when omitted
    """
    global _config

    if config:
        _config = config

    log_level = _LEVEL_MAP[_config.level]

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG if _config.log_file else log_level)
    root_logger.propagate = False

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        StructuredFormatter(
            json_format=_config.json_format,
            include_timestamp=_config.include_timestamp,
            include_context=_config.include_context,
            color=_config.color and sys.stderr.isatty(),
        )
    )
    root_logger.addHandler(console_handler)

    if _config.log_file:
        _config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(_config.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(
            StructuredFormatter(
                json_format=_config.json_format,
                include_timestamp=True,
                include_context=True,
                color=False,
            )
        )
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger inside the `testimony_audit` namespace
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_verbosity(level: LogLevel) -> None:
    """Set global verbosity level."""
    _config.level = level
    configure_logging(_config)


def enable_file_logging(log_file: Path) -> None:
    """Enable logging to a file."""
    _config.log_file = log_file
    configure_logging(_config)


class LogContext:
    """Context manager for temporary logging context.

    Example:
        with LogContext(run="validate", episode="1084"):
            logger.info("Loaded clips")
    """

    def __init__(self, **context: Any):
        self.context = context
        self._old_factory = None

    def __enter__(self) -> "LogContext":
        self._old_factory = logging.getLogRecordFactory()
        old_factory = self._old_factory
        context = self.context

        def factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)


def log_operation_start(logger: logging.Logger, operation: str, **context: Any) -> None:
    """Log the start of an operation."""
    logger.info(f"Starting: {operation}", extra=context)


def log_operation_complete(
    logger: logging.Logger,
    operation: str,
    duration: float | None = None,
    **context: Any,
) -> None:
    """Log the completion of an operation.

    Args:
        logger: Logger to use
        operation: Operation name
        duration: Optional wall-clock duration in seconds
        **context: Additional context
    """
    if duration is not None:
        context["duration_seconds"] = round(duration, 2)
    logger.info(f"Completed: {operation}", extra=context)


def log_operation_failed(
    logger: logging.Logger,
    operation: str,
    error: Exception,
    **context: Any,
) -> None:
    """Log a failed operation."""
    context["error_type"] = type(error).__name__
    context["error_message"] = str(error)
    logger.error(f"Failed: {operation}", extra=context)
