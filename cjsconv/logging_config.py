"""
Logging configuration for cjsconv.

This module provides structured (JSON) logging for analysis runs, so a
conversion pipeline can collect per-file export and import statistics.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any

from .constants import LOG_LEVEL

LOGGER_NAME = "cjsconv"


class AnalysisLogFormatter(logging.Formatter):
    """Custom formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log records with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Analysis context
        for field in ["path", "prefix", "export_count", "import_count"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if hasattr(record, "error"):
            log_entry["error"] = record.error

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_logging(
    log_file: str | None = None,
    log_level: str = LOG_LEVEL,
    enable_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``cjsconv`` logger.

    Args:
        log_file: Path to a log file (optional), rotated hourly
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_console: Whether to also log to stderr

    Returns:
        The configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False

    # Clear existing handlers
    logger.handlers.clear()

    formatter = AnalysisLogFormatter()

    if log_file:
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="H",
            interval=1,
            backupCount=168,  # 7 days
            encoding="utf-8",
            utc=False,
        )
        file_handler.suffix = "%Y%m%d_%H%M%S.log"
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the package logger."""
    return logging.getLogger(LOGGER_NAME)
