"""Tests for error handling and logging modules."""

import json
import logging

import pytest

from testimony_audit.errors import (
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ResourceError,
    TestimonyAuditError,
    ValidationError,
    format_error_for_display,
)
from testimony_audit.logging import (
    LogConfig,
    LogContext,
    LogLevel,
    StructuredFormatter,
    configure_logging,
    get_logger,
    log_operation_complete,
    log_operation_failed,
    log_operation_start,
)


def make_record(msg="hello", **extra):
    record = logging.LogRecord(
        name="testimony_audit.audit",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a capturing handler to the package logger."""
    configure_logging(LogConfig(level=LogLevel.DEBUG, color=False))
    logger = logging.getLogger("testimony_audit")
    handler = ListHandler()
    logger.addHandler(handler)
    yield handler
    logger.removeHandler(handler)
    configure_logging(LogConfig())


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_categories(self):
        """Test category values."""
        assert ValidationError("x").category is ErrorCategory.VALIDATION
        assert ConfigurationError("x").category is ErrorCategory.CONFIGURATION
        assert ResourceError("x").category is ErrorCategory.RESOURCE
        assert TestimonyAuditError("x").category is ErrorCategory.INTERNAL

    def test_context_in_str(self):
        """Test context is shown in the message."""
        error = ValidationError("Bad proposal", context={"clip_id": "a"})

        assert str(error) == "Bad proposal (context: {'clip_id': 'a'})"
        assert error.recoverable is False

    def test_format_for_display(self):
        """Test display formatting."""
        error = ResourceError("Clip not found", context={"clip_id": "a"})

        assert format_error_for_display(error) == "[resource] Clip not found (clip_id=a)"
        assert format_error_for_display(ConfigurationError("Bad")) == "[configuration] Bad"
        assert format_error_for_display(KeyError("k")) == "[error] KeyError: 'k'"


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_rollback_runs_and_error_propagates(self, captured):
        """Test rollback on failure without suppressing the error."""
        calls = []

        with pytest.raises(ValueError):
            with ErrorContext(
                "apply repair",
                rollback=lambda: calls.append("rolled back"),
                context={"clip_id": "swap"},
            ):
                raise ValueError("boom")

        assert calls == ["rolled back"]
        failed = [r for r in captured.records if r.getMessage() == "Failed: apply repair"]
        assert len(failed) == 1
        assert failed[0].error_type == "ValueError"
        assert failed[0].error_message == "boom"
        assert failed[0].clip_id == "swap"

    def test_no_error(self):
        """Test a clean block."""
        with ErrorContext("noop") as ctx:
            pass

        assert ctx.error is None


class TestLogging:
    """Tests for logging helpers."""

    def test_get_logger_namespaces(self):
        """Test loggers live under the package namespace."""
        assert get_logger("testimony_audit.storage").name == "testimony_audit.storage"
        assert get_logger("scripts").name == "testimony_audit.scripts"

    def test_text_format_includes_context(self):
        """Test extra fields are appended."""
        formatter = StructuredFormatter(include_timestamp=False, color=False)

        line = formatter.format(make_record("Validated", flagged=2))

        assert "INFO" in line
        assert "audit" in line
        assert "Validated" in line
        assert "[flagged=2]" in line

    def test_json_format(self):
        """Test JSON output."""
        formatter = StructuredFormatter(json_format=True)

        data = json.loads(formatter.format(make_record("Validated", flagged=2, obj=object())))

        assert data["level"] == "info"
        assert data["message"] == "Validated"
        assert data["context"]["flagged"] == 2
        assert isinstance(data["context"]["obj"], str)
        assert "timestamp" in data

    def test_operation_helpers(self, captured):
        """Test start/complete/failed helpers."""
        logger = get_logger("testimony_audit.audit")

        log_operation_start(logger, "validation", episode="1084")
        log_operation_complete(logger, "validation", duration=1.234, flagged=3)
        log_operation_failed(logger, "validation", ValueError("bad"))

        messages = [r.getMessage() for r in captured.records]
        assert messages == ["Starting: validation", "Completed: validation", "Failed: validation"]
        assert captured.records[1].duration_seconds == 1.23
        assert captured.records[2].error_type == "ValueError"

    def test_log_context(self, captured):
        """Test LogContext adds fields to records inside the block."""
        logger = get_logger("testimony_audit.audit")

        with LogContext(run="validate"):
            logger.info("inside")
        logger.info("outside")

        assert captured.records[0].run == "validate"
        assert not hasattr(captured.records[1], "run")

    def test_file_logging(self, tmp_path):
        """Test logs are written to a file."""
        log_file = tmp_path / "logs" / "audit.log"
        configure_logging(LogConfig(level=LogLevel.QUIET, log_file=log_file, color=False))

        get_logger("testimony_audit.audit").debug("written to file")

        for handler in logging.getLogger("testimony_audit").handlers:
            handler.flush()
        assert "written to file" in log_file.read_text()
        configure_logging(LogConfig())
