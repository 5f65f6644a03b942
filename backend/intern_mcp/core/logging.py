# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for the MCP server.

Every module logs through `logging.getLogger(__name__)`; the package logger
"intern_mcp" gets one stderr handler with either the JSON or the text
formatter. Fields passed through `log_event` (session ids, HTTP methods)
appear as JSON keys, or as key=value pairs in text mode.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

PACKAGE_LOGGER = "intern_mcp"

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_extra_fields(record))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _extra_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def get_logger(name: str, log_level: str = "INFO", log_format: str = "json") -> logging.Logger:
    """
    Get a logger writing to stderr.

    Calling it again for the same name replaces the handler, so the format
    can be switched at startup.

    Args:
        name: Logger name
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" or "text"
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    logger.handlers = [handler]
    return logger


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """Configure the package logger every module logs through."""
    return get_logger(PACKAGE_LOGGER, log_level=log_level, log_format=log_format)


def log_event(logger: logging.Logger, event: str, level: str = "INFO", **fields: Any) -> None:
    """Log an event name with structured fields attached to the record."""
    getattr(logger, level.lower())(event, extra=fields)
