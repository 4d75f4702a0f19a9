"""
Tests for logging configuration with rotation.

Tests verify:
- Log file is created (and its directory, if missing)
- Line format: {timestamp} - {level} - {logger} - {message}
- Rotation at the configured size, oldest backup dropped
- Level filtering and invalid level fallback
- Console handler only in DEBUG mode or under journald
"""
import logging
import re
import sys
from unittest.mock import MagicMock, patch

import pytest

from now_screening.utils import logging as log_module


@pytest.fixture
def log_dir(tmp_path):
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def mock_settings(log_dir):
    mock = MagicMock()
    mock.LOG_LEVEL = "DEBUG"
    mock.LOG_FILE = str(log_dir / "test.log")
    mock.LOG_MAX_SIZE = 5 * 1024 * 1024
    mock.LOG_BACKUP_COUNT = 3
    mock.DEBUG = False
    return mock


@pytest.fixture
def configure(mock_settings, monkeypatch):
    """Run setup_logging() against mock settings; restores root handlers afterwards."""
    monkeypatch.delenv("USE_JOURNALD", raising=False)
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level

    def run():
        with patch.object(log_module, "settings", mock_settings):
            log_module.setup_logging()
        return root_logger

    yield run

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)


def stdout_handlers(root_logger):
    return [
        h for h in root_logger.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
    ]


class TestLoggingSetup:
    """Tests for setup_logging() function."""

    def test_creates_log_file(self, configure, log_dir):
        configure()
        logging.getLogger("test").info("Test message")

        assert (log_dir / "test.log").exists()

    def test_log_format(self, configure, log_dir):
        configure()
        logging.getLogger("now_screening.test").info("Cache hit for cuttack")

        content = (log_dir / "test.log").read_text()
        pattern = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - INFO - now_screening\.test - Cache hit for cuttack"
        assert re.search(pattern, content), f"Log format doesn't match. Got: {content}"

    def test_rotation_occurs_at_max_size(self, configure, mock_settings, log_dir):
        mock_settings.LOG_MAX_SIZE = 500
        configure()

        logger = logging.getLogger("test")
        for i in range(50):
            logger.info(f"Extracted listing number {i} with some padding to fill up the log file quickly")

        assert (log_dir / "test.log").exists()
        assert (log_dir / "test.log.1").exists()

    def test_oldest_backup_deleted(self, configure, mock_settings, log_dir):
        mock_settings.LOG_MAX_SIZE = 300
        mock_settings.LOG_BACKUP_COUNT = 2
        configure()

        logger = logging.getLogger("test")
        for i in range(100):
            logger.info(f"Message {i} with padding to fill the log file and trigger rotations quickly")

        assert (log_dir / "test.log.2").exists()
        assert not (log_dir / "test.log.3").exists()

    def test_repeated_setup_does_not_duplicate_handlers(self, configure):
        configure()
        root_logger = configure()

        assert len(root_logger.handlers) == 1

    def test_creates_missing_directory(self, configure, mock_settings, tmp_path):
        log_file = tmp_path / "nested" / "dir" / "app.log"
        mock_settings.LOG_FILE = str(log_file)
        configure()

        logging.getLogger("test").info("Test")
        assert log_file.exists()


class TestLogLevels:
    """Tests for level filtering."""

    @pytest.mark.parametrize("level, expected, excluded", [
        ("DEBUG", ["Debug", "Info", "Warning", "Error"], []),
        ("INFO", ["Info", "Warning", "Error"], ["Debug"]),
        ("WARNING", ["Warning", "Error"], ["Debug", "Info"]),
        ("ERROR", ["Error"], ["Debug", "Info", "Warning"]),
    ])
    def test_level_filtering(self, configure, mock_settings, log_dir, level, expected, excluded):
        mock_settings.LOG_LEVEL = level
        configure()

        logger = logging.getLogger("test")
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")

        content = (log_dir / "test.log").read_text()
        for name in expected:
            assert f"{name} message" in content
        for name in excluded:
            assert f"{name} message" not in content

    def test_invalid_log_level_falls_back_to_info(self, configure, mock_settings, log_dir, capsys):
        mock_settings.LOG_LEVEL = "LOUD"
        configure()

        captured = capsys.readouterr()
        assert "Invalid LOG_LEVEL 'LOUD'" in captured.out
        assert "Falling back to INFO" in captured.out

        logger = logging.getLogger("test")
        logger.debug("Debug message")
        logger.info("Info message")

        content = (log_dir / "test.log").read_text()
        assert "Debug message" not in content
        assert "Info message" in content


class TestConsoleHandler:
    """Tests for console output."""

    def test_console_handler_in_debug_mode(self, configure, mock_settings):
        mock_settings.DEBUG = True
        assert len(stdout_handlers(configure())) == 1

    def test_no_console_handler_in_production(self, configure):
        assert stdout_handlers(configure()) == []

    def test_journald_handler_omits_timestamp(self, configure, monkeypatch):
        monkeypatch.setenv("USE_JOURNALD", "true")

        handlers = stdout_handlers(configure())

        assert len(handlers) == 1
        assert handlers[0].formatter._fmt == log_module.JOURNALD_FORMAT


class TestGetLogger:
    """Tests for get_logger() function."""

    def test_returns_logger_with_given_name(self):
        assert log_module.get_logger("now_screening.x").name == "now_screening.x"

    def test_returns_same_logger_for_same_name(self):
        assert log_module.get_logger("same.name") is log_module.get_logger("same.name")
