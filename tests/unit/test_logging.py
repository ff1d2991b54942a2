"""Unit tests for structured logging."""

import json
import logging

import pytest

from esl_grader.utils.logging import (
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)


class _ListHandler(logging.Handler):
    def __init__(self, formatter):
        super().__init__()
        self.setFormatter(formatter)
        self.lines = []

    def emit(self, record):
        self.lines.append(self.format(record))


@pytest.fixture
def capture_logs():
    """Configure package logging and collect formatted lines in memory."""
    root = logging.getLogger("esl_grader")

    def _capture(json_format):
        setup_logging("DEBUG", json_format=json_format)
        stream_handler = root.handlers[0]
        root.removeHandler(stream_handler)
        handler = _ListHandler(stream_handler.formatter)
        for log_filter in stream_handler.filters:
            handler.addFilter(log_filter)
        root.addHandler(handler)
        return handler

    yield _capture

    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True


class TestStructuredLogging:
    """Test logger setup and extra data rendering."""

    def test_loggers_live_under_package_root(self):
        assert get_logger("esl_grader.grading").logger.name == "esl_grader.grading"
        assert get_logger("elsewhere").logger.name == "esl_grader.elsewhere"

    def test_text_format_appends_extra_data(self, capture_logs):
        handler = capture_logs(json_format=False)
        set_request_id("req-1")
        get_logger("esl_grader.test").info("Graded", extra_data={"points": 91})
        assert "Graded [points=91]" in handler.lines[-1]
        assert "[req-1]" in handler.lines[-1]

    def test_json_format_merges_extra_data(self, capture_logs):
        handler = capture_logs(json_format=True)
        set_request_id("req-2")
        get_logger("esl_grader.test").warning("Dropped issue", extra_data={"start": 900})
        record = json.loads(handler.lines[-1])
        assert record["message"] == "Dropped issue"
        assert record["level"] == "WARNING"
        assert record["request_id"] == "req-2"
        assert record["start"] == 900

    def test_set_request_id_generates_one(self):
        request_id = set_request_id()
        assert request_id == get_request_id()
        assert len(request_id) == 12
