"""Tests for structured JSON logging."""
from __future__ import annotations

import json
import logging
import sys

from src.shared.logging import JSONFormatter, new_run_id, run_id_var, setup_logging


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="src.test", level=logging.INFO, pathname=__file__, lineno=1,
        msg=message, args=(), exc_info=None,
    )


class TestJSONFormatter:
    """Every entry is one JSON object."""

    def test_fields(self):
        token = run_id_var.set("run-1")
        try:
            payload = json.loads(JSONFormatter("req-coverage").format(_record()))
        finally:
            run_id_var.reset(token)
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["service_name"] == "req-coverage"
        assert payload["run_id"] == "run-1"
        assert payload["logger"] == "src.test"
        assert "timestamp" in payload

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert payload["exception"] == "boom"


class TestSetupLogging:
    """Handler installation."""

    def test_replaces_handlers(self):
        logger = setup_logging("svc-test", "DEBUG")
        logger = setup_logging("svc-test", "WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "coverage.log"
        logger = setup_logging("svc-file", "INFO", str(log_file))
        logger.info("to file")
        for handler in logger.handlers:
            handler.flush()
        assert len(logger.handlers) == 2
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "to file"
        setup_logging("svc-file", "INFO")

    def test_logger_name_override(self):
        logger = setup_logging("svc", "INFO", logger_name="svc.custom")
        assert logger.name == "svc.custom"


class TestRunId:
    def test_new_run_id_sets_context(self):
        run_id = new_run_id()
        assert run_id_var.get() == run_id
        assert new_run_id() != run_id
