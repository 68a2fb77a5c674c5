"""Logging setup for the httpcraft bridge."""

import logging
import sys

from .config import get_settings

LOGGER_NAME = "mcp_httpcraft"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> logging.Logger:
    """Configure the package logger from settings.

    Records go to stderr; stdout carries command output and must stay clean.
    """
    settings = get_settings()

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(settings.logging.level)
    app_logger.propagate = False

    if app_logger.hasHandlers():
        app_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(settings.logging.level)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.addHandler(stderr_handler)

    return app_logger
