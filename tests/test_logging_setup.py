"""
Tests for process logging setup.
"""

import io
import json
import logging

import pytest

from core.logging_setup import setup_logging


@pytest.fixture
def root_logger_state():
    """Restore the root logger after setup_logging replaces its handlers."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def capture_stream(root: logging.Logger) -> io.StringIO:
    stream = io.StringIO()
    root.handlers[0].setStream(stream)
    return stream


class TestJsonFormat:
    """Tests for log_format="json"."""

    def test_multiline_message_with_quotes(self, root_logger_state):
        setup_logging(log_format="json", correlation_id="cycle-1")
        stream = capture_stream(root_logger_state)

        logging.getLogger("normalizer.town_builder").info('Board: "hi"\nline2')

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["message"] == 'Board: "hi"\nline2'
        assert entry["level"] == "INFO"
        assert entry["logger"] == "normalizer.town_builder"
        assert entry["correlation_id"] == "cycle-1"

    def test_exception_included(self, root_logger_state):
        setup_logging(log_format="json")
        stream = capture_stream(root_logger_state)

        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logging.getLogger("collector.marker_feed").exception("Unexpected error")

        entry = json.loads(stream.getvalue().splitlines()[0])
        assert "RuntimeError: boom" in entry["exception"]


class TestTextFormat:
    """Tests for log_format="text"."""

    def test_text_line(self, root_logger_state):
        setup_logging(level="DEBUG", log_format="text", correlation_id="abc")
        stream = capture_stream(root_logger_state)

        logging.getLogger("ingestion_service").debug("cycle done")

        line = stream.getvalue().strip()
        assert "| DEBUG    | ingestion_service | abc | cycle done" in line

    def test_httpx_quieted(self, root_logger_state):
        setup_logging(level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
