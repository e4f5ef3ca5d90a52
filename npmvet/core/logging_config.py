"""
Logging configuration for npmvet.

Log records emitted by the resolver, the analyzers and the cache carry
structured extras (``event``, ``package``, ``failed_queries``...). The
formatter below writes them as one JSON object per line so operators can
alert on conditions such as a failed OSV batch query.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any

LOGGER_NAME = "npmvet"

_EXTRA_FIELDS = (
    "event",
    "package",
    "version",
    "total_packages",
    "failed_queries",
    "cache",
    "bypass",
    "status",
    "error",
    "request_id",
)


class AnalysisEventFormatter(logging.Formatter):
    """Formats log records as JSON lines with structured extras."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(
    log_file: str | None = None,
    log_level: str = "INFO",
    enable_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``npmvet`` logger hierarchy.

    Args:
        log_file: Path to a log file, rotated hourly (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to also log to stderr

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False

    logger.handlers.clear()
    formatter = AnalysisEventFormatter()

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
