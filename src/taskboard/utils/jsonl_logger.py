"""
Logging setup for Taskboard.

This module provides JSONL (JSON Lines) logging with a structured format for
the API service. Each log entry is a single JSON object on its own line. A
plain text format is used for interactive development.
"""

import json
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from .request_id_middleware import RequestIDFilter, get_current_request_id

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"


class JSONLFormatter(logging.Formatter):
    """Custom JSONL formatter for structured logging."""

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSONL entry."""
        request_id = getattr(record, "request_id", None) or get_current_request_id()

        log_entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "service": self.service or "unknown",
            "logger": record.name,
            "request_id": request_id,
            "route": getattr(record, "route", None),
            "msg": record.getMessage(),
        }

        if record.exc_info:
            log_entry["stack"] = self.formatException(record.exc_info)

        log_entry["file"] = record.filename
        log_entry["line"] = record.lineno
        if record.funcName:
            log_entry["func"] = record.funcName

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class JSONLHandler(TimedRotatingFileHandler):
    """Daily rotating file handler with JSONL formatting."""

    def __init__(
        self,
        log_dir: str,
        service: str,
        level: int = logging.INFO,
        backup_count: int = 30,
    ):
        service_dir = Path(log_dir) / service
        service_dir.mkdir(parents=True, exist_ok=True)

        super().__init__(
            filename=str(service_dir / f"{service}.jsonl"),
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        self.setFormatter(JSONLFormatter(service=service))
        self.setLevel(level)


def setup_logging(
    service: str,
    level: str = "INFO",
    fmt: str = "text",
    log_dir: Optional[str] = None,
    backup_count: int = 30,
) -> logging.Logger:
    """
    Configure the ``taskboard`` logger hierarchy.

    Args:
        service: Service name stamped on structured records
        level: Log level name
        fmt: "text" for human-readable lines, "json" for JSONL on stderr
        log_dir: When set, also write JSONL to a daily rotating file there
        backup_count: Number of daily files to keep

    Returns:
        The configured ``taskboard`` logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("taskboard")
    logger.setLevel(numeric_level)

    # Clear any existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    request_filter = RequestIDFilter()

    console = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        console.setFormatter(JSONLFormatter(service=service))
    else:
        console.setFormatter(logging.Formatter(TEXT_FORMAT))
    console.addFilter(request_filter)
    logger.addHandler(console)

    if log_dir:
        file_handler = JSONLHandler(log_dir, service, numeric_level, backup_count)
        file_handler.addFilter(request_filter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
