"""Structured JSON logging with correlation ID support.

All ``spacely.*`` loggers propagate to one JSON handler installed on the
package logger, so domain modules can use plain ``logging.getLogger(__name__)``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

ROOT_LOGGER = "spacely"


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_obj.update(extra_fields)

        return json.dumps(log_obj, default=str)


def configure_logging(level: str | None = None) -> logging.Logger:
    """Install the JSON handler on the package logger (idempotent).

    Level comes from ``level`` or the LOG_LEVEL env var, default INFO.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h.formatter, JsonFormatter) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel((level or os.environ.get("LOG_LEVEL", "INFO")).upper())
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger whose records end up on the JSON handler."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        configure_logging()
    return logging.getLogger(name)
