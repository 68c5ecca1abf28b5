"""Logging infrastructure for sqlgate.

This module provides structured logging with JSON output and context
tracking for each served tool call.
"""

from sqlgate.logging.filters import ContextFilter
from sqlgate.logging.logger import CustomJsonFormatter, get_logger, redact, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "CustomJsonFormatter",
    "redact",
    "ContextFilter",
]
