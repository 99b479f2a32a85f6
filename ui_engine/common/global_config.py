"""
================================================================================
Global Logging Configuration
================================================================================

Centralized Loguru logging setup for the engine and its test suites.

Features:
    - One-time logger initialization (idempotent)
    - Level / format / optional rotating file sink taken from config.yaml
    - Environment overrides through ConfigLoader (LOGGING_LEVEL=DEBUG)

Author: Automation Team
License: MIT
================================================================================
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config_loader import ConfigLoader

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
)

_logger_initialized: bool = False


def init_logger(level: Optional[str] = None, format_str: Optional[str] = None) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_str: Custom log format string. Defaults to config value.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    config = ConfigLoader()
    log_level = level or config.get("logging.level", "INFO")
    log_format = format_str or config.get("logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    log_file = config.get("logging.file", None)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level.upper(),
            format=log_format.replace("{level: <8}", "{level}"),
            rotation=config.get("logging.rotation", "10 MB"),
            retention=config.get("logging.retention", "7 days"),
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def get_logger():
    """Return the Loguru logger, initializing it on first use."""
    if not _logger_initialized:
        init_logger()
    return logger


def reset_logger() -> None:
    """Allow init_logger() to run again (used after a config reload)."""
    global _logger_initialized
    _logger_initialized = False
