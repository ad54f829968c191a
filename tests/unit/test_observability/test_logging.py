"""Tests for structured logging configuration."""

import logging

import structlog

from truthordare.observability.context import clear_correlation_id, set_correlation_id
from truthordare.observability.logging import (
    NOISY_LIBRARY_LOGGERS,
    add_correlation_id_processor,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestAddCorrelationIdProcessor:
    """Tests for add_correlation_id_processor."""

    def test_adds_correlation_id_when_set(self):
        """Should add correlation_id to event dict when set."""
        set_correlation_id("auto-generate-20260101-020000")

        result = add_correlation_id_processor(None, "info", {"event": "job_starting"})

        assert result["correlation_id"] == "auto-generate-20260101-020000"
        clear_correlation_id()

    def test_adds_none_marker_when_not_set(self):
        """Should add 'none' as correlation_id when not set."""
        clear_correlation_id()

        result = add_correlation_id_processor(None, "info", {"event": "job_starting"})

        assert result["correlation_id"] == "none"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_output_includes_correlation_id(self, capsys):
        """Should render JSON lines with the correlation ID."""
        configure_logging(level="INFO", json_output=True)
        set_correlation_id("cleanup-1")

        structlog.get_logger().info("cleanup_started", retention_months=2)
        clear_correlation_id()

        err = capsys.readouterr().err
        assert '"event": "cleanup_started"' in err
        assert '"correlation_id": "cleanup-1"' in err
        assert '"retention_months": 2' in err

    def test_level_filtering(self, capsys):
        """Should drop entries below the configured level."""
        configure_logging(level="WARNING", json_output=True)

        structlog.get_logger().info("hidden_event")
        structlog.get_logger().warning("visible_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "visible_event" in err

    def test_console_output(self, capsys):
        """Should render human-readable output when JSON is off."""
        configure_logging(level="INFO", json_output=False, add_timestamp=False)

        structlog.get_logger().info("scheduler_started")

        assert "scheduler_started" in capsys.readouterr().err


class TestGetLogger:
    """Tests for get_logger and context binding."""

    def teardown_method(self):
        clear_context()
        structlog.reset_defaults()

    def test_binds_component_and_context(self, capsys):
        """Should include bound component and context in entries."""
        configure_logging(level="INFO", json_output=True)

        get_logger("scheduler", job="cleanup").info("job_added")

        err = capsys.readouterr().err
        assert '"component": "scheduler"' in err
        assert '"job": "cleanup"' in err

    def test_bind_context_applies_to_all_loggers(self, capsys):
        """Should merge contextvars into every entry."""
        configure_logging(level="INFO", json_output=True)
        bind_context(run="nightly")

        structlog.get_logger().info("first")
        clear_context()
        structlog.get_logger().info("second")

        lines = capsys.readouterr().err.strip().splitlines()
        assert '"run": "nightly"' in lines[0]
        assert '"run"' not in lines[1]


class TestLibraryLogging:
    """Tests for stdlib logging of third-party libraries."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_library_loggers_raised_to_warning(self):
        """Should keep APScheduler and SQLAlchemy quiet at INFO."""
        configure_logging(level="INFO")

        for name in NOISY_LIBRARY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_library_loggers_follow_debug(self):
        """Should let library loggers through at DEBUG."""
        configure_logging(level="DEBUG")

        assert logging.getLogger("apscheduler").level == logging.DEBUG
