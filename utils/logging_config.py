"""
Centralized logging configuration for the bot.
Console output always, plus an optional rotating file per entry point.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d] - %(message)s"
)


def setup_logging(
    name: str,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure a named logger.

    Level and directory fall back to the values in settings, so the
    entry point only has to say which file it writes to.

    Args:
        name: Logger name (typically __name__)
        log_level: Logging level name, settings.log_level when omitted
        log_file: Optional log file name (relative to log_dir)
        log_dir: Directory for log files, settings.log_dir when omitted
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance
    """
    from config import settings

    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    logger.setLevel(level)
    # Own handlers below; the root logger would print every line again
    logger.propagate = False

    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir_path = Path(log_dir or settings.log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir_path / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_root_logging(log_level: Optional[str] = None) -> None:
    """Route module loggers (logging.getLogger(__name__)) to stdout."""
    from config import settings

    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
