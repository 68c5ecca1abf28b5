"""Operation models.

This module provides data structures that describe caller requests
independent of how they are executed. Operations are pure data that are:
- Parsed from JSON-compatible payloads tagged with ``type``
- Compiled into parameterized SQL by the operation compiler
- Executed by the execution engine
"""

from typing import Annotated, Any, Dict, Mapping, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from sqlgate.common.exceptions import ErrorCode, validation_error
from sqlgate.constants.sql import OperationType

# Base operation
from sqlgate.operations.base import BaseOperation

# DML operations
from sqlgate.operations.dml import (
    Read,
    Create,
    Update,
    Delete,
    BulkInsert,
)

# Raw SQL operations
from sqlgate.operations.raw import Execute, DDL

# Schema operations
from sqlgate.operations.schema import (
    ColumnSpec,
    ColumnDefinition,
    ColumnPosition,
    AddColumn,
    DropColumn,
    ModifyColumn,
    RenameColumn,
    RenameTable,
    AddIndex,
    DropIndex,
)

# Composite and introspection operations
from sqlgate.operations.transaction import Transaction
from sqlgate.operations.utility import ListObjects, Utility


Operation = Annotated[
    Union[
        Read,
        Create,
        Update,
        Delete,
        BulkInsert,
        Execute,
        DDL,
        AddColumn,
        DropColumn,
        ModifyColumn,
        RenameColumn,
        RenameTable,
        AddIndex,
        DropIndex,
        Transaction,
        ListObjects,
        Utility,
    ],
    Field(discriminator="type"),
]

_operation_adapter: TypeAdapter = TypeAdapter(Operation)


def _describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def parse_operation(payload: Union[BaseOperation, Mapping[str, Any]]) -> BaseOperation:
    """Parse a ``type``-tagged payload into its operation model.

    Args:
        payload: Operation model or JSON-compatible mapping

    Returns:
        The concrete operation instance

    Raises:
        ValidationError: If the tag is unknown or the payload is malformed
    """
    if isinstance(payload, BaseOperation):
        return payload

    if not isinstance(payload, Mapping):
        raise validation_error(
            "Operation must be an object",
            value=type(payload).__name__,
        )

    try:
        return _operation_adapter.validate_python(dict(payload))
    except PydanticValidationError as exc:
        op_type = payload.get("type")
        prefix = f"Invalid '{op_type}' operation" if op_type else "Invalid operation"
        raise validation_error(
            f"{prefix}: {_describe_errors(exc)}",
            field="type",
            value=op_type,
            cause=exc,
        ) from exc


def operation_from_tool(tool_name: str, arguments: Mapping[str, Any]) -> BaseOperation:
    """Build an operation from a named tool call and its arguments.

    The tool name becomes the ``type`` tag. ``add_index`` callers send the
    index kind as ``type``; it is moved to ``indexType`` first.
    """
    try:
        OperationType(tool_name)
    except ValueError as exc:
        raise validation_error(
            f"Unknown tool: {tool_name}",
            field="tool",
            value=tool_name,
            error_code=ErrorCode.UNKNOWN_TOOL,
            hint="Use one of the tools listed by the server",
        ) from exc

    payload: Dict[str, Any] = dict(arguments or {})
    if tool_name == OperationType.ADD_INDEX.value and "type" in payload:
        payload.setdefault("indexType", payload.pop("type"))
    payload["type"] = tool_name
    return parse_operation(payload)


__all__ = [
    # Base
    "BaseOperation",
    "Operation",
    "parse_operation",
    "operation_from_tool",
    # DML
    "Read",
    "Create",
    "Update",
    "Delete",
    "BulkInsert",
    # Raw
    "Execute",
    "DDL",
    # Schema
    "ColumnSpec",
    "ColumnDefinition",
    "ColumnPosition",
    "AddColumn",
    "DropColumn",
    "ModifyColumn",
    "RenameColumn",
    "RenameTable",
    "AddIndex",
    "DropIndex",
    # Composite / introspection
    "Transaction",
    "ListObjects",
    "Utility",
]
