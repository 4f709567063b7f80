"""
Tests for configuration and logging setup.
"""

import logging

import pytest

from tablequery import QueryConfig, configure_logging, get_logger, query
from tablequery.logging_config import LOGGER_NAME, FlushingStreamHandler


# =============================================================================
# Configuration
# =============================================================================

class TestQueryConfig:
    """Tests for QueryConfig."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("TABLEQUERY_LOG_LEVEL", "TABLEQUERY_LOG_FILE",
                     "TABLEQUERY_MAX_ROWS", "TABLEQUERY_STRICT_VERBS"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = QueryConfig()
        assert config.log_level == "WARNING"
        assert config.log_file is None
        assert config.max_rows == 20
        assert config.strict_verbs is True
        assert config.level == logging.WARNING

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TABLEQUERY_LOG_LEVEL", "debug")
        monkeypatch.setenv("TABLEQUERY_LOG_FILE", "/tmp/tq.log")
        monkeypatch.setenv("TABLEQUERY_MAX_ROWS", "5")
        monkeypatch.setenv("TABLEQUERY_STRICT_VERBS", "false")

        config = QueryConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.level == logging.DEBUG
        assert config.log_file == "/tmp/tq.log"
        assert config.max_rows == 5
        assert config.strict_verbs is False

    @pytest.mark.parametrize("value, expected", [
        ("1", True), ("yes", True), ("TRUE", True), ("0", False), ("off", False),
    ])
    def test_strict_verbs_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv("TABLEQUERY_STRICT_VERBS", value)
        assert QueryConfig().strict_verbs is expected

    def test_for_testing(self):
        config = QueryConfig.for_testing()
        assert config.log_level == "DEBUG"
        assert config.log_file is None
        assert config.strict_verbs is True

    def test_validate_ok(self):
        assert QueryConfig().validate() == []

    def test_validate_warnings(self):
        config = QueryConfig(log_level="LOUD", max_rows=0)
        warnings = config.validate()
        assert len(warnings) == 2
        assert config.level == logging.WARNING

    def test_to_dict(self):
        assert QueryConfig.for_testing().to_dict() == {
            "log_level": "DEBUG",
            "log_file": None,
            "max_rows": 20,
            "strict_verbs": True,
        }


# =============================================================================
# Logging
# =============================================================================

class TestLogging:
    """Tests for configure_logging."""

    def test_configure(self):
        logger = configure_logging(QueryConfig.for_testing(), force=True)
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], FlushingStreamHandler)

    def test_configured_once(self):
        logger = configure_logging(QueryConfig.for_testing(), force=True)
        configure_logging(QueryConfig(log_level="ERROR"))
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_force_replaces_handlers(self):
        configure_logging(QueryConfig.for_testing(), force=True)
        logger = configure_logging(QueryConfig(log_level="ERROR", log_file=None), force=True)
        assert logger.level == logging.ERROR
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        path = tmp_path / "logs" / "tablequery.log"
        config = QueryConfig(log_level="DEBUG", log_file=str(path))
        logger = configure_logging(config, force=True)
        assert len(logger.handlers) == 2

        get_logger("tablequery.test").info("hello")
        assert " - tablequery.test - INFO - hello" in path.read_text()

    def test_evaluate_logs_verbs(self, tmp_path, orders):
        path = tmp_path / "tablequery.log"
        configure_logging(QueryConfig(log_level="DEBUG", log_file=str(path)), force=True)

        query().filter("amount > 20").evaluate(orders)
        text = path.read_text()
        assert "Evaluating Query: 1 verbs on 4 rows" in text
        assert "filter: 2 rows" in text
