"""Structured JSON logging with run_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

# Context variable for the analysis run id
run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "run_id", default=""
)


class JSONFormatter(logging.Formatter):
    """Custom JSON log formatter."""

    def __init__(self, service_name: str = "unknown") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service_name": self.service_name,
            "run_id": run_id_var.get(""),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


def setup_logging(
    service_name: str,
    level: str = "INFO",
    log_file: str | None = None,
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure structured JSON logging for the engine.

    Args:
        service_name: Name used for the logger and in every log entry.
        level: Log level string (e.g. "INFO", "DEBUG").
        log_file: Optional path of a file that receives the same entries.
        logger_name: Logger to configure, defaults to *service_name*.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name or service_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(service_name=service_name))
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter(service_name=service_name))
        logger.addHandler(file_handler)

    return logger


def new_run_id() -> str:
    """Start a new analysis run and return its id."""
    run_id = str(uuid.uuid4())
    run_id_var.set(run_id)
    return run_id
