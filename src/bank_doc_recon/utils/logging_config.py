"""Logging configuration for the reconciliation application."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigurationError

APP_LOGGER_NAME = "bank_doc_recon"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn a level name such as ``"debug"`` or ``"INFO"`` into its number.

    Raises:
        ConfigurationError: If the name is not a standard logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the application logger.

    Pipeline modules log under ``bank_doc_recon.*``: run totals at INFO,
    per-pair rejections and per-transaction decisions at DEBUG.

    Args:
        level: Level number or name for the console
        log_file: Optional path to a rotating log file
        log_format: Console format string (defaults to DEFAULT_LOG_FORMAT)
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The configured application logger
    """
    level = resolve_level(level)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level)

    # Reconfiguring replaces handlers instead of stacking them
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format or DEFAULT_LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
