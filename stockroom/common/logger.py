"""Logging infrastructure for Stockroom.

Provides centralized logging configuration with support for both
file and console output, log rotation, and ISO 8601 timestamps.
Library modules only call logging.getLogger(__name__); applications call
setup_logger() once for the "stockroom" root to attach handlers.
"""

import logging
import logging.handlers
import os
from typing import Optional

from stockroom.core.config import Settings, get_settings


VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logger(
    name: str = "stockroom",
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: Optional[bool] = None,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    settings: Optional[Settings] = None,
) -> logging.Logger:
    """Set up a logger with file and console handlers.

    Unset arguments fall back to the application settings.

    Args:
        name: Logger name (typically the package or component name)
        log_dir: Directory for log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        file_logging: Enable file logging
        console_logging: Enable console logging
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        settings: Settings to read defaults from

    Returns:
        Configured logger instance
    """
    settings = settings or get_settings()
    log_dir = log_dir if log_dir is not None else settings.log_dir
    level = level if level is not None else settings.log_level
    file_logging = file_logging if file_logging is not None else settings.file_logging

    logger = logging.getLogger(name)

    # Validate and set log level
    level_upper = level.upper()
    if level_upper not in VALID_LEVELS:
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: {', '.join(VALID_LEVELS)}"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    if log_format is None:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%dT%H:%M:%S"

    formatter = logging.Formatter(log_format, datefmt=date_format)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{name}.log")
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get an existing logger by name."""
    return logging.getLogger(name)
