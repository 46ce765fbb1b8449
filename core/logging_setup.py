"""
Core Module - Logging Setup.

Installs a single stdout handler on the root logger. Components log
through named loggers (collector.*, repository.*, ingestion_service).

Formats:
- text: one pipe-separated line per record
- json: one JSON object per line; multi-line messages stay on one line
"""

import json
import logging
import sys
from typing import Optional


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(correlation_id)s | %(message)s"


class JsonLineFormatter(logging.Formatter):
    """Serializes each record as a single JSON object."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        super().__init__()
        self._correlation_id = correlation_id or ""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": self._correlation_id,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class _CorrelationFilter(logging.Filter):
    def __init__(self, correlation_id: Optional[str]) -> None:
        super().__init__()
        self._correlation_id = correlation_id or ""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = self._correlation_id
        return True


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Route all process logging to stdout.

    Args:
        level: Root log level name
        log_format: "json" or "text"
        correlation_id: Tag added to every record

    Returns:
        The "townwatch" application logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JsonLineFormatter(correlation_id))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
        handler.addFilter(_CorrelationFilter(correlation_id))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    return logging.getLogger("townwatch")
