"""Logging configuration and utilities."""

import logging
import sys
from pathlib import Path

from ruck_analytics.core.config import get_settings


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure library-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to
            ``LoggingSettings.level``
        log_file: Optional path to log file; defaults to ``LoggingSettings.file``
    """
    settings = get_settings().logging
    level = level or settings.level
    log_file = log_file or settings.file

    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger("ruck_analytics")
    root_logger.setLevel(log_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger under the ruck_analytics namespace
    """
    if not name.startswith("ruck_analytics"):
        name = f"ruck_analytics.{name}"

    return logging.getLogger(name)
