"""
Logging setup for PatenteQuiz.

Modules log through ``logging.getLogger(__name__)``; call ``setup_logging()``
once from the application entrypoint to attach handlers.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

try:
    from ..config import config
except ImportError:
    from src.config import config


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "src"


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[Path | str] = None,
) -> logging.Logger:
    """
    Configure the package logger with a rotating file and a console handler.

    Safe to call more than once: handlers are only attached the first time.

    Args:
        level: Log level name (default: config.logging.log_level)
        log_dir: Directory for the log file (default: config.paths.logs_dir)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel((level or config.logging.log_level).upper())

    if getattr(logger, "_patente_configured", False):
        return logger

    log_dir = Path(log_dir) if log_dir else config.paths.logs_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        log_dir / config.logging.log_file,
        maxBytes=config.logging.max_bytes,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    logger._patente_configured = True
    return logger
