"""Common utilities for Stockroom."""

from .logger import setup_logger, get_logger
from .config import load_config, load_role_catalog

__all__ = ["get_logger", "load_config", "load_role_catalog", "setup_logger"]
