"""Unit tests for the logging configuration module.

Logs are rendered as JSON by default, so each captured record's message is a
JSON object carrying the event, the log level and any bound context.
"""

import json
import logging

import pytest
import structlog

from issuegraph.log_config import (
    LIBRARY_LOGGERS,
    bind_command_context,
    clear_context,
    configure_logging,
    get_logger,
)


def parse(record: logging.LogRecord) -> dict:
    return json.loads(record.getMessage())


class TestLoggingConfiguration:
    """Test cases for logging configuration."""

    def test_configure_logging_returns_stdlib_logger(self):
        """Test that configured loggers are stdlib-backed BoundLoggers."""
        configure_logging(level="INFO", json_logs=True)
        logger = get_logger("issuegraph.test")

        assert isinstance(logger.bind(), structlog.stdlib.BoundLogger)

    def test_configure_logging_invalid_level(self):
        """Test logging configuration with invalid level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="VERBOSE", json_logs=True)

    def test_level_is_case_insensitive(self):
        """Test that lowercase level names are accepted."""
        configure_logging(level="debug", json_logs=False)

        assert logging.getLogger().level == logging.DEBUG

    def test_library_loggers_quiet_above_debug(self):
        """Test that HTTP client loggers only pass warnings unless debugging."""
        configure_logging(level="INFO", json_logs=True)

        assert all(logging.getLogger(name).level == logging.WARNING for name in LIBRARY_LOGGERS)

    def test_library_loggers_follow_debug(self):
        """Test that DEBUG also enables HTTP client request logging."""
        configure_logging(level="DEBUG", json_logs=True)

        assert logging.getLogger("github").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_library_loggers_respect_higher_level(self):
        """Test that an ERROR level is not lowered for library loggers."""
        configure_logging(level="ERROR", json_logs=True)

        assert logging.getLogger("urllib3").level == logging.ERROR


class TestStructuredOutput:
    """Test the JSON event layout and context binding."""

    def setup_method(self):
        """Set up a clean JSON configuration before each test."""
        configure_logging(level="INFO", json_logs=True)
        clear_context()

    def teardown_method(self):
        """Clean up after each test."""
        clear_context()

    def test_event_fields(self, caplog):
        """Test that events carry level, timestamp and keyword fields."""
        caplog.set_level(logging.INFO)

        get_logger("issuegraph.test").info("dependency_added", source="12", target="7")

        event = parse(caplog.records[0])
        assert event["event"] == "dependency_added"
        assert event["level"] == "info"
        assert event["source"] == "12"
        assert "timestamp" in event

    def test_command_context_is_merged(self, caplog):
        """Test that the command context appears on every event."""
        caplog.set_level(logging.INFO)
        logger = get_logger("issuegraph.test")

        correlation_id = bind_command_context("tree", item_id="12", correlation_id="run-42")
        logger.info("graph_built")
        logger.info("tree_rendered")

        first, second = (parse(record) for record in caplog.records)
        assert correlation_id == "run-42"
        assert first["command"] == "tree"
        assert first["item_id"] == "12"
        assert first["correlation_id"] == second["correlation_id"] == "run-42"
        assert first["logger"] == "issuegraph.test"

    def test_correlation_id_generated(self, caplog):
        """Test that each invocation gets a fresh correlation id when none is given."""
        caplog.set_level(logging.INFO)

        first = bind_command_context("stats")
        clear_context()
        second = bind_command_context("stats")
        get_logger("issuegraph.test").info("stats_rendered")

        event = parse(caplog.records[0])
        assert len(first) == len(second) == 12
        assert first != second
        assert event["correlation_id"] == second
        assert "item_id" not in event

    def test_clear_context(self, caplog):
        """Test that clearing drops the bound command context."""
        caplog.set_level(logging.INFO)

        bind_command_context("tree", item_id="12")
        clear_context()
        get_logger("issuegraph.test").info("graph_built")

        event = parse(caplog.records[0])
        assert "command" not in event
        assert "correlation_id" not in event

    def test_exception_is_rendered(self, caplog):
        """Test that logger.exception includes the traceback."""
        caplog.set_level(logging.ERROR)
        logger = get_logger("issuegraph.test")

        try:
            msg = "Corrupt local cache file"
            raise ValueError(msg)
        except ValueError:
            logger.exception("configuration_validation_error")

        event = parse(caplog.records[0])
        assert event["event"] == "configuration_validation_error"
        assert event["exception"][0]["exc_type"] == "ValueError"
        assert event["exception"][0]["exc_value"] == "Corrupt local cache file"

    def test_level_filtering(self, caplog):
        """Test that events below the configured level are dropped."""
        configure_logging(level="WARNING", json_logs=True)
        caplog.set_level(logging.WARNING)
        logger = get_logger("issuegraph.test")

        logger.info("edge_lookup_started")
        logger.warning("edge_lookup_failed")

        assert [parse(record)["event"] for record in caplog.records] == ["edge_lookup_failed"]
