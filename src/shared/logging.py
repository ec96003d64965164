"""Structured JSON logging with render_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

# Context variable for render_id
render_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "render_id", default=""
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
            "render_id": render_id_var.get(""),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


def setup_logging(
    service_name: str,
    level: str = "INFO",
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure structured JSON logging for the code generator.

    Args:
        service_name: Name of the service in log entries.
        level: Log level string (e.g. "INFO", "DEBUG").
        logger_name: Logger to configure; defaults to *service_name*.

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
def render_scope(render_id: str | None = None) -> Iterator[str]:
    """Bind a render id to every log line emitted inside the block."""
    value = render_id or str(uuid.uuid4())
    token = render_id_var.set(value)
    try:
        yield value
    finally:
        render_id_var.reset(token)
