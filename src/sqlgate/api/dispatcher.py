from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlgate.api.catalog import TOOL_SPECS, ToolSpec, resolve_enabled_tools
from sqlgate.api.envelopes import format_result
from sqlgate.common.exceptions import DatabaseError, ErrorCode, SQLGateError, validation_error
from sqlgate.compute.engine import SQLEngine
from sqlgate.observability import (
    ToolCallContext,
    resolve_request_context,
    sanitize_extras,
    tool_call_scope,
)
from sqlgate.operations import operation_from_tool
from sqlgate.query_builder.compiler import compile_operation


class ToolDispatcher:
    """Routes named tool calls through compile and execute.

    A call is parsed into its operation model, compiled into a plan, run by
    the engine and shaped into a result envelope. Every failure, expected
    or not, is returned as an error envelope so callers never see a raw
    exception.

    Example:
        >>> dispatcher = ToolDispatcher(engine, enabled_tools=["read", "list"])
        >>> dispatcher.dispatch("read", {"table": "users", "where": {"id": 5}})
        {'success': True, 'table': 'users', 'count': 1, 'data': [...]}
    """

    def __init__(self, engine: SQLEngine, enabled_tools: Optional[Iterable[str]] = None):
        self.engine = engine
        self.enabled_tools: List[str] = resolve_enabled_tools(enabled_tools)

    def list_tools(self) -> List[ToolSpec]:
        return [TOOL_SPECS[name] for name in self.enabled_tools]

    def is_enabled(self, name: str) -> bool:
        return name in self.enabled_tools

    def dispatch(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        ctx: Optional[ToolCallContext] = None,
    ) -> Dict[str, Any]:
        """Run one tool call and return its envelope.

        Args:
            name: Tool name
            arguments: Tool arguments as sent by the caller
            ctx: Request context; a new one is generated when omitted

        Returns:
            Success envelope, or the error envelope of the failure
        """
        ctx = resolve_request_context(ctx)
        if ctx.tool != name:
            ctx = ctx.model_copy(update={"tool": name})
        log = ctx.get_logger("dispatcher")

        try:
            if not self.is_enabled(name):
                raise validation_error(
                    f"Unknown tool: {name}",
                    field="tool",
                    value=name,
                    error_code=ErrorCode.UNKNOWN_TOOL,
                    hint="Use one of the tools listed by the server",
                )

            with tool_call_scope(ctx):
                operation = operation_from_tool(name, arguments or {})
                log.debug(f"Dispatching tool {name}", extra=sanitize_extras(operation.telemetry_fields()))
                plan = compile_operation(operation, ctx)
                result = self.engine.run_plan(plan, ctx)
                return format_result(operation, result)

        except SQLGateError as exc:
            log.warning(
                f"Tool {name} failed: {exc.message}",
                extra={"tool": name, "error_code": exc.error_code.value},
            )
            return exc.to_dict()
        except Exception as exc:
            log.exception(f"Unexpected error in tool {name}", extra={"tool": name})
            return DatabaseError(
                "An unexpected error occurred",
                error_code=ErrorCode.EXECUTION_ERROR,
                hint="Check the server logs for details",
                cause=exc,
            ).to_dict()
