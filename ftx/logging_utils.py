"""Structured logging utilities for FTX services."""
from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from .config import LOG_TIME_FORMAT


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for FTX logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, LOG_TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_ftx_"):
                payload[key[5:]] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    name: str,
    *,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure and return a logger with JSON formatting."""

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter()
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        rotating = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setFormatter(formatter)
        logger.addHandler(rotating)

    return logger


def log_progress(
    logger: logging.Logger,
    *,
    port: int,
    state: str,
    path: Optional[str] = None,
    bytes_transferred: Optional[int] = None,
    total_bytes: Optional[int] = None,
    files: Optional[int] = None,
    detail: Optional[str] = None,
) -> None:
    """Emit a structured progress log entry.

    Counters that are not known at the time of the call are left out of the
    entry instead of being reported as zero.
    """

    extra: Dict[str, Any] = {"_ftx_port": port, "_ftx_state": state}
    optional = {
        "_ftx_path": path,
        "_ftx_bytes_transferred": bytes_transferred,
        "_ftx_total_bytes": total_bytes,
        "_ftx_files": files,
        "_ftx_detail": detail or None,
    }
    extra.update({key: value for key, value in optional.items() if value is not None})
    logger.info("progress", extra=extra)
