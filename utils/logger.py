# -*- coding: utf-8 -*-
"""
Logging configuration.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOGGER_NAME = "census"

# Will be set by setup_logger
_logger: Optional[logging.Logger] = None


def setup_logger(log_path: Optional[Path] = None, console: bool = True) -> logging.Logger:
    """
    Setup application logger with a rotating file handler and a console handler.

    Args:
        log_path: Override for the log file (defaults to Config.LOG_PATH)
        console: Attach the stdout handler (INFO and above)
    """
    global _logger

    # Import here to avoid circular imports
    from app.config import Config

    log_path = Path(log_path) if log_path else Config.LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Reconfiguring must not stack handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=Config.LOG_MAX_BYTES,
        backupCount=Config.LOG_BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(message)s"))
        logger.addHandler(console_handler)

    _logger = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a module.

    Child loggers are created lazily; handlers are only attached once
    setup_logger() has run, so importing a module never touches the disk.
    """
    if _logger is not None:
        return _logger.getChild(name)
    return logging.getLogger(LOGGER_NAME).getChild(name)
