"""Logging filter that stamps tool call context onto records.

Tool calls are served concurrently, on the event loop and in worker
threads. The current call's request id and tool name live in a context
variable so every record emitted on behalf of a call can be correlated.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Dict, Optional

from sqlgate.__version__ import __version__

_call_context: ContextVar[Dict[str, Optional[str]]] = ContextVar("sqlgate_call_context", default={})


class ContextFilter(logging.Filter):
    """Add ``request_id``, ``tool_name`` and server identity to each record.

    A ``request_id`` passed explicitly through ``extra`` wins over the
    context variable. The filter never drops records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current = _call_context.get()
        if getattr(record, "request_id", None) is None:
            record.request_id = current.get("request_id")
        record.tool_name = current.get("tool_name")
        record.service = "sqlgate"
        record.service_version = __version__
        return True


def set_request_context(
    request_id: Optional[str] = None,
    tool_name: Optional[str] = None,
) -> None:
    """Bind the current tool call; ``None`` keeps the existing value."""
    updated = dict(_call_context.get())
    if request_id is not None:
        updated["request_id"] = request_id
    if tool_name is not None:
        updated["tool_name"] = tool_name
    _call_context.set(updated)


def clear_request_context() -> None:
    _call_context.set({})
