"""
Logging configuration and utilities.

Provides centralized logging setup for the analytics engine and the CLI.
"""

import logging
import sys
from pathlib import Path

from healthbridge_analytics.utils.parameters import LoggingConfig

PACKAGE_LOGGER = "healthbridge_analytics"


def setup_logging(config: LoggingConfig, logger_name: str | None = PACKAGE_LOGGER) -> logging.Logger:
    """
    Set up logging for the application.

    Console output goes to stderr so that JSON payloads printed by the CLI
    on stdout stay machine-readable.

    Args:
        config: Logging configuration.
        logger_name: Logger name. Defaults to the package logger; None configures the root logger.

    Returns:
        Configured logger instance.
    """
    level = getattr(logging, config.level.upper())

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(config.format)

    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # SQL echo is controlled by DatabaseConfig.echo, not by the app log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance by name.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
