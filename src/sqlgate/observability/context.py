"""Per-tool-call request context.

A ``ToolCallContext`` is created for every tool call and passed explicitly
through the dispatcher, the compiler and the engine. It owns the request
id stamped on every log line of the call and hands out component loggers.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple, Union

from opentelemetry.trace import Status, StatusCode
from pydantic import Field

from sqlgate.logging import get_logger
from sqlgate.logging.filters import clear_request_context, set_request_context
from sqlgate.telemetry import get_tracer
from sqlgate.types.base import SQLGateModel


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges request fields into call-site extras."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


class ToolCallContext(SQLGateModel):
    """Identity and telemetry fields of one tool call.

    Attributes:
        request_id: Unique id of the call
        tool: Tool name, once known
        attributes: Extra fields copied onto logs as ``ctx.<key>``
    """

    request_id: str
    tool: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def generate(cls, tool: Optional[str] = None, **attributes: Any) -> "ToolCallContext":
        return cls(request_id=str(uuid.uuid4()), tool=tool, attributes=attributes)

    def telemetry_fields(self) -> Dict[str, str]:
        fields = {"request_id": self.request_id}
        if self.tool:
            fields["tool"] = self.tool
        fields.update(sanitize_extras(self.attributes, prefix="ctx."))
        return fields

    def get_logger(self, component: str) -> ContextLoggerAdapter:
        """Logger named ``sqlgate.<component>`` that stamps this call's fields."""
        return ContextLoggerAdapter(get_logger(f"sqlgate.{component}"), self.telemetry_fields())


@contextmanager
def tool_call_scope(ctx: ToolCallContext) -> Iterator[None]:
    """Bind ``ctx`` to the logging context and open a span for the call."""
    set_request_context(request_id=ctx.request_id, tool_name=ctx.tool)

    tracer = get_tracer("sqlgate")
    with tracer.start_as_current_span(f"sqlgate.tool.{ctx.tool or 'unknown'}") as span:
        for key, value in ctx.telemetry_fields().items():
            span.set_attribute(f"sqlgate.{key}", value)

        try:
            yield
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR))
            raise
        finally:
            clear_request_context()


def resolve_request_context(ctx: Union[ToolCallContext, str, None]) -> ToolCallContext:
    """Return ``ctx``, a context for a bare request id, or a fresh context."""
    if isinstance(ctx, ToolCallContext):
        return ctx
    if isinstance(ctx, str):
        return ToolCallContext(request_id=ctx)
    return ToolCallContext.generate()


def sanitize_extras(extra: Optional[Dict[str, Any]], *, prefix: str = "") -> Dict[str, str]:
    """Stringify telemetry extras, dropping ``None`` values."""
    if not extra:
        return {}
    return {f"{prefix}{key}": str(value) for key, value in extra.items() if value is not None}
