"""Logging setup for the sqlgate server.

Log lines are written to stderr because stdout carries the MCP stdio
protocol. Each line is a JSON object holding the message, the tool call
context injected by :class:`~sqlgate.logging.filters.ContextFilter`, any
``extra`` fields and, inside a span, the OpenTelemetry trace ids.
Configuration goes through ``logging.config.dictConfig``.
"""

from __future__ import annotations

import json
import logging
import logging.config
import re
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet

from opentelemetry import trace

# Attributes every LogRecord carries; anything else on a record came from ``extra``
_STANDARD_ATTRIBUTES: FrozenSet[str] = frozenset(
    vars(logging.LogRecord("sqlgate", logging.INFO, __file__, 0, "", (), None))
) | {"asctime", "message"}

# user:password@ in mysql:// URLs
_URL_PASSWORD = re.compile(r"(mysql2?(?:\+\w+)?://[^:/@\s]+:)[^@\s]+@")

# Libraries that are chatty below WARNING
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "mcp")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def redact(text: str) -> str:
    """Mask passwords embedded in connection URLs."""
    return _URL_PASSWORD.sub(r"\1***@", text)


class CustomJsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        entry.update({
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRIBUTES and value is not None
        })

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = format(span_context.trace_id, "032x")
            entry["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Send JSON logs at ``level`` to stderr.

    Below DEBUG the SQLAlchemy and MCP loggers are held at WARNING.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = level.upper()
    library_level = "DEBUG" if level == "DEBUG" else "WARNING"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "sqlgate.logging.logger.CustomJsonFormatter"},
        },
        "filters": {
            "tool_call_context": {"()": "sqlgate.logging.filters.ContextFilter"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
                "filters": ["tool_call_context"],
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {name: {"level": library_level} for name in _QUIET_LOGGERS},
        "root": {"level": level, "handlers": ["stderr"]},
    })
