"""
Unit Tests for Centralized Logging.

Tests the logging configuration, structured fields, and source handling.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from notevault.core import logging as logging_module
from notevault.core.config_schema import LoggingSchema
from notevault.core.logging import VALID_SOURCES, get_logger, log_with_source, setup_logging


@pytest.fixture
def mock_logging_config():
    return LoggingSchema.model_validate({
        "level": "INFO",
        "format": "console",
        "handlers": {
            "console": {"enabled": True},
            "file": {
                "enabled": False,
                "path": "logs/system.jsonl",
                "max_bytes": 1048576,
                "backup_count": 1,
            },
        },
    })


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Keep handlers installed by setup_logging from leaking into other tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestValidSources:
    """Tests for VALID_SOURCES constant."""

    def test_contains_feature_sources(self):
        assert {"cli", "catalog", "bookmarks", "upload", "requests", "auth", "backend"} <= VALID_SOURCES

    def test_is_frozenset(self):
        assert isinstance(VALID_SOURCES, frozenset)


class TestLoggingConfigLoading:
    """Tests for logging configuration loading from YAML."""

    def test_reads_project_logging_yaml(self):
        config = logging_module._load_logging_config()

        assert config.level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        assert config.handlers.file.path == "logs/system.jsonl"


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_configures_root_level(self, mock_logging_config):
        with patch("notevault.core.logging._load_logging_config", return_value=mock_logging_config):
            setup_logging(level="DEBUG", format_type="json")

        assert logging.getLogger().level == logging.DEBUG

    def test_uses_config_defaults(self, mock_logging_config):
        with patch("notevault.core.logging._load_logging_config", return_value=mock_logging_config):
            setup_logging()

        assert logging.getLogger().level == logging.INFO

    def test_console_disabled_installs_no_handler(self, mock_logging_config):
        mock_logging_config.handlers.console.enabled = False

        with patch("notevault.core.logging._load_logging_config", return_value=mock_logging_config):
            setup_logging()

        assert logging.getLogger().handlers == []

    def test_file_logging_writes_jsonl(self, tmp_path, mock_logging_config):
        mock_logging_config.handlers.console.enabled = False
        mock_logging_config.handlers.file.enabled = True

        with patch("notevault.core.logging._load_logging_config", return_value=mock_logging_config), \
             patch("notevault.core.logging.find_project_root", return_value=tmp_path):
            setup_logging(format_type="json")

        logging.getLogger("notevault.test").warning("written")
        for handler in logging.getLogger().handlers:
            handler.flush()

        log_file = tmp_path / "logs" / "system.jsonl"
        assert log_file.exists()
        assert "written" in log_file.read_text()

    def test_quiets_http_libraries(self, mock_logging_config):
        with patch("notevault.core.logging._load_logging_config", return_value=mock_logging_config):
            setup_logging(level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING


class TestLogWithSource:
    """Tests for explicit source tagging."""

    def test_get_logger_returns_logger(self):
        logger = get_logger("notevault.test")
        assert hasattr(logger, "info")

    def test_adds_source_field(self):
        logger = MagicMock()
        log_with_source(logger, "bookmarks", "info", "Toggle committed", note_id="n1")

        logger.info.assert_called_once_with("Toggle committed", source="bookmarks", note_id="n1")

    def test_supports_levels(self):
        logger = MagicMock()
        for level in ("debug", "warning", "error"):
            log_with_source(logger, "catalog", level, "message")
            getattr(logger, level).assert_called_once()

    def test_raises_on_invalid_level(self):
        with pytest.raises(AttributeError):
            log_with_source(logging.getLogger("x"), "cli", "loud", "message")

    def test_unknown_source_is_recorded_as_unknown(self):
        logger = MagicMock()
        log_with_source(logger, "gateway", "info", "message")

        logger.info.assert_called_once_with("message", source="unknown")
