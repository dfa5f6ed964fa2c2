"""Tests for logging setup."""

import io
import json
import logging

import pytest

from txsql.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_txsql_logger():
    """Restore the txsql logger after each test."""
    logger = logging.getLogger("txsql")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestConfigureLogging:
    """Test configure_logging()."""

    def test_json_output(self):
        """Test records are rendered as JSON."""
        stream = io.StringIO()
        configure_logging(level="INFO", log_format="json", stream=stream)
        logging.getLogger("txsql.core.transaction").info("Committed transaction on %s", "sqlite://")

        event = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert event["event"] == "Committed transaction on sqlite://"
        assert event["level"] == "info"
        assert event["logger"] == "txsql.core.transaction"
        assert "timestamp" in event

    def test_text_output(self):
        """Test records are rendered as text."""
        stream = io.StringIO()
        configure_logging(level="INFO", log_format="text", stream=stream)
        logging.getLogger("txsql.core.bulk_copy").info("Copied %d rows", 3)
        assert "Copied 3 rows" in stream.getvalue()

    def test_level_filters(self):
        """Test records below the level are dropped."""
        stream = io.StringIO()
        configure_logging(level="WARNING", log_format="text", stream=stream)
        logging.getLogger("txsql.core.execution").debug("Executing text")
        assert stream.getvalue() == ""

    def test_reconfigure_replaces_handler(self):
        """Test calling twice installs a single handler."""
        configure_logging(level="INFO", log_format="text", stream=io.StringIO())
        logger = configure_logging(level="INFO", log_format="json", stream=io.StringIO())
        assert len([h for h in logger.handlers if h.get_name() == "txsql"]) == 1

    def test_invalid_format(self):
        """Test unknown formats are rejected."""
        with pytest.raises(ValueError):
            configure_logging(level="INFO", log_format="xml")
