"""Tests for logging setup."""

import logging
import uuid

import pytest

from stockroom.common.logger import get_logger, setup_logger
from stockroom.core.config import Settings


@pytest.fixture
def logger_name():
    """Unique logger name so handlers never leak between tests."""
    name = f"stockroom.test.{uuid.uuid4().hex}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_console_only(self, logger_name):
        logger = setup_logger(logger_name, level="DEBUG", file_logging=False)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_file_logging(self, logger_name, tmp_path):
        logger = setup_logger(logger_name, log_dir=str(tmp_path), level="INFO", file_logging=True)
        logger.info("hello")

        log_file = tmp_path / f"{logger_name}.log"
        assert log_file.exists()
        assert "hello" in log_file.read_text()

    def test_invalid_level(self, logger_name):
        with pytest.raises(ValueError):
            setup_logger(logger_name, level="LOUD")

    def test_no_duplicate_handlers(self, logger_name):
        setup_logger(logger_name, file_logging=False)
        logger = setup_logger(logger_name, file_logging=False)
        assert len(logger.handlers) == 1

    def test_defaults_from_settings(self, logger_name):
        settings = Settings(_env_file=None, log_level="warning", file_logging=False)
        logger = setup_logger(logger_name, settings=settings)
        assert logger.level == logging.WARNING

    def test_get_logger(self, logger_name):
        assert get_logger(logger_name) is logging.getLogger(logger_name)
