"""Error handling for testimony-audit.

Provides:
- Custom exception hierarchy with error categories
- Error context manager with optional rollback
- Display formatting for CLI output

The validation core never raises for bad clip data; these errors come from
the boundaries (configuration, the clip store, applying repairs).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from testimony_audit.logging import get_logger, log_operation_failed

logger = get_logger(__name__)


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad input - don't retry
    CONFIGURATION = "configuration"  # Bad thresholds/config - don't retry
    RESOURCE = "resource"  # Missing file/clip - don't retry
    INTERNAL = "internal"  # Bug in code - don't retry


class TestimonyAuditError(Exception):
    """Base exception for testimony-audit errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
        recoverable: Whether the error is recoverable
    """

    __test__ = False  # not a pytest test class despite the name

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(TestimonyAuditError):
    """Input validation error.

    Examples: applying a repair proposal that carries no times.
    """

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ConfigurationError(TestimonyAuditError):
    """Configuration error.

    Examples: thresholds out of order, unreadable thresholds file.
    """

    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ResourceError(TestimonyAuditError):
    """Resource not found or unavailable.

    Examples: missing clip store, unknown clip id.
    """

    category = ErrorCategory.RESOURCE

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ErrorContext:
    """Context manager for error handling with automatic rollback.

    Keeps the clip store consistent by logging the failure and running
    the rollback before the exception propagates.
    """

    def __init__(
        self,
        operation: str,
        rollback: Callable[[], None] | None = None,
        context: dict | None = None,
    ):
        """Initialize error context.

        Args:
            operation: Name of the operation being performed
            rollback: Optional rollback function to call on error
            context: Additional context to include in log records
        """
        self.operation = operation
        self.rollback = rollback
        self.context = context or {}
        self.error: Exception | None = None

    def __enter__(self) -> "ErrorContext":
        logger.debug(f"Starting operation: {self.operation}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        if exc_val is not None:
            self.error = exc_val

            log_operation_failed(logger, self.operation, exc_val, **self.context)

            if self.rollback:
                try:
                    logger.info(f"Rolling back {self.operation}")
                    self.rollback()
                except Exception as rollback_error:
                    logger.error(
                        f"Rollback failed for {self.operation}: {rollback_error}",
                    )
        else:
            logger.debug(f"Completed operation: {self.operation}")

        # Don't suppress the exception
        return False


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, TestimonyAuditError):
        category = error.category.value
        base_message = error.message

        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {base_message} ({context_str})"

        return f"[{category}] {base_message}"

    return f"[error] {type(error).__name__}: {error}"
