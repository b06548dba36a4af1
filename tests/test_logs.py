"""Tests for structured logging."""
import json
import logging

import pytest

from hierarch.logs import JSONFormatter, configure_logging


def _record(**extra):
    record = logging.LogRecord("hierarch.engine.run", logging.INFO, __file__, 1, "Grace for %s", ("Ada",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_base_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "hierarch.engine.run"
        assert entry["message"] == "Grace for Ada"
        assert "run_id" not in entry

    def test_context_extras(self):
        entry = json.loads(JSONFormatter().format(_record(run_id="r1", user_id="42", period=None)))
        assert entry["run_id"] == "r1"
        assert entry["user_id"] == "42"
        assert "period" not in entry


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore(self):
        logger = logging.getLogger("hierarch")
        level = logger.level
        yield
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(level)

    def test_single_handler(self):
        configure_logging("debug", "text")
        logger = configure_logging("warning", "json")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("HIERARCH_LOG_LEVEL", "ERROR")
        assert configure_logging().level == logging.ERROR

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            configure_logging("info", "xml")
