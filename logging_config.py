"""
Logging configuration for logo-colors
Provides consistent logging setup across all modules
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER = "logo_colors"


def setup_logging(level: Optional[str] = None,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup logging for the decoder, the CLI and the web app.

    Args:
        level: Log level name; defaults to $LOG_LEVEL, then INFO
        log_file: Optional file to write logs to (defaults to console only)

    Returns:
        Configured root logger for the project
    """
    level = level or os.environ.get("LOG_LEVEL", "INFO")
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # stderr keeps stdout clean for the report
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. get_logger('png_decode') -> 'logo_colors.png_decode'."""
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')
