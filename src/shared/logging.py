"""Structured JSON logging with query_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

# Context variable for query_id
query_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "query_id", default=""
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
            "logger": record.name,
            "query_id": query_id_var.get(""),
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


def setup_logging(
    service_name: str, level: str = "INFO", logger_name: str | None = None
) -> logging.Logger:
    """Configure structured JSON logging for a service.

    Args:
        service_name: Name of the service for log entries.
        level: Log level string (e.g. "INFO", "DEBUG").
        logger_name: Logger to attach the handler to; defaults to
            ``service_name``.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name or service_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(service_name=service_name))
    logger.addHandler(handler)

    return logger


@contextmanager
def query_context(query_id: str | None = None) -> Iterator[str]:
    """Tag every log record emitted inside the block with one query_id.

    Nested blocks keep the outer id so a handler-level query and the
    per-service queries it spawns share a single id.
    """
    current = query_id_var.get("")
    if current and query_id is None:
        yield current
        return
    new_id = query_id or str(uuid.uuid4())
    token = query_id_var.set(new_id)
    try:
        yield new_id
    finally:
        query_id_var.reset(token)
