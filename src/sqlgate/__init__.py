
from sqlgate.__version__ import __version__

from sqlgate.operations import (
    Operation,
    parse_operation,
    operation_from_tool,
)

from sqlgate.query_builder import (
    CompiledPlan,
    CompiledStatement,
    compile_operation,
)

from sqlgate.compute import (
    SQLEngine,
    ExecutionResult,
    translate_error,
)

from sqlgate.api import ToolDispatcher, TOOL_SPECS

from sqlgate.common.exceptions import SQLGateError, ErrorCode

from sqlgate.settings import DatabaseConfig, get_settings, parse_connection_string


__all__ = [
    "__version__",

    "Operation",
    "parse_operation",
    "operation_from_tool",

    "CompiledPlan",
    "CompiledStatement",
    "compile_operation",

    "SQLEngine",
    "ExecutionResult",
    "translate_error",

    "ToolDispatcher",
    "TOOL_SPECS",

    # Exceptions (public API)
    "SQLGateError",
    "ErrorCode",

    "DatabaseConfig",
    "get_settings",
    "parse_connection_string",
]
