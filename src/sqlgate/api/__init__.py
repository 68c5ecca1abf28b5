"""Tool layer: catalog, dispatch and result envelopes."""

from sqlgate.api.catalog import TOOL_SPECS, ToolSpec, resolve_enabled_tools
from sqlgate.api.dispatcher import ToolDispatcher
from sqlgate.api.envelopes import FORMATTERS, format_result, json_safe, to_json

__all__ = [
    "TOOL_SPECS",
    "ToolSpec",
    "resolve_enabled_tools",
    "ToolDispatcher",
    "FORMATTERS",
    "format_result",
    "json_safe",
    "to_json",
]
