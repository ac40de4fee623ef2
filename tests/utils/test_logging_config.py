"""
Tests for the logging configuration helpers.
"""

import logging
import logging.handlers

import pytest
import structlog

from tidal_client.utils.logging_config import TidalLogger, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global logging changes after each test."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    """Test logging setup."""

    def test_console_only(self):
        logger_instance = setup_logging(log_level="DEBUG")

        root_logger = logging.getLogger()
        assert isinstance(logger_instance, TidalLogger)
        assert root_logger.level == logging.DEBUG
        assert any(isinstance(h, logging.StreamHandler) for h in root_logger.handlers)
        assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root_logger.handlers)

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "tidal.log"

        setup_logging(log_level="INFO", enable_console=False, log_file=str(log_file))
        get_logger("tidal_client.tests").info("Track fetched", track_id=1)

        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "Track fetched" in content
        assert "track_id=1" in content

    def test_http_stack_quieted(self):
        setup_logging(log_level="DEBUG")

        assert logging.getLogger("aiohttp.access").level == logging.WARNING
