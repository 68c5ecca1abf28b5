"""Observability helpers: tool call context, logging scope and tracing."""

from sqlgate.observability.context import (
    ContextLoggerAdapter,
    ToolCallContext,
    resolve_request_context,
    sanitize_extras,
    tool_call_scope,
)

__all__ = [
    "ContextLoggerAdapter",
    "ToolCallContext",
    "resolve_request_context",
    "sanitize_extras",
    "tool_call_scope",
]
