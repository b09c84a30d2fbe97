"""Structured logging utility with JSON output."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

MAX_FIELD_LENGTH = 500


def _sanitize(value: Any) -> Any:
    """Make an ``extra`` value JSON-safe. Raw bytes are replaced by their size."""
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes: {len(value)} bytes>"
    if isinstance(value, (list, tuple)):
        return [_sanitize(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        text = str(value)
        if len(text) > MAX_FIELD_LENGTH:
            return text[:MAX_FIELD_LENGTH] + "...[truncated]"
        return text


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    # Attributes every LogRecord carries; anything else came in via ``extra``.
    RESERVED = set(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in self.RESERVED or key.startswith("_"):
                continue
            payload[key] = _sanitize(value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger writing JSON lines to stdout
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

        # Keep records out of the root logger so they are not printed twice.
        logger.propagate = False

    return logger
