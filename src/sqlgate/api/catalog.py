"""Tool catalog.

Every operation kind is published as a named tool with a description and
a JSON Schema for its arguments. Which tools a server exposes is decided
by the ``enabled_tools`` setting.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import Field

from sqlgate.constants.sql import ALLOWED_BASE_TYPES, IndexType, OperationType, UtilityAction
from sqlgate.logging import get_logger
from sqlgate.types.base import SQLGateModel

logger = get_logger(__name__)


class ToolSpec(SQLGateModel):
    """A tool as advertised to callers."""

    name: str
    description: str
    input_schema: Dict[str, Any] = Field(default_factory=dict)


def _object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


_TABLE = {"type": "string", "description": "Table name"}
_WHERE = {"type": "object", "description": "Where conditions as key-value pairs"}
_DATA = {"type": "object", "description": "Data as column-value pairs"}

_COLUMN_ATTRIBUTES: Dict[str, Any] = {
    "type": {
        "type": "string",
        "description": f"Column type, one of {', '.join(ALLOWED_BASE_TYPES)} with optional length",
    },
    "nullable": {"type": "boolean", "description": "Whether the column accepts NULL"},
    "default": {
        "type": ["string", "number", "boolean", "null"],
        "description": "Default value",
    },
    "autoIncrement": {"type": "boolean", "description": "Add AUTO_INCREMENT"},
    "comment": {"type": "string", "description": "Column comment"},
}

_COLUMN_DEFINITION = _object(
    {"name": {"type": "string", "description": "Column name"}, **_COLUMN_ATTRIBUTES},
    required=["name", "type"],
)
_COLUMN_SPEC = _object(dict(_COLUMN_ATTRIBUTES), required=["type"])


TOOL_SPECS: Dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name=OperationType.LIST.value,
            description="List tables in the database or columns in a specific table",
            input_schema=_object({
                "table": {"type": "string", "description": "Optional table name to list columns for"},
            }),
        ),
        ToolSpec(
            name=OperationType.READ.value,
            description="Read data from a table with optional filtering and pagination",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "columns": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Columns to select (default: all)",
                    },
                    "where": _WHERE,
                    "limit": {"type": "integer", "minimum": 1, "maximum": 10000,
                              "description": "Maximum number of rows to return"},
                    "offset": {"type": "integer", "minimum": 0, "description": "Number of rows to skip"},
                    "orderBy": {"type": "string", "description": "Order by clause, e.g. 'name DESC, id'"},
                },
                required=["table"],
            ),
        ),
        ToolSpec(
            name=OperationType.CREATE.value,
            description="Insert data into a table",
            input_schema=_object({"table": _TABLE, "data": _DATA}, required=["table", "data"]),
        ),
        ToolSpec(
            name=OperationType.UPDATE.value,
            description="Update data in a table",
            input_schema=_object(
                {"table": _TABLE, "data": _DATA, "where": _WHERE},
                required=["table", "data", "where"],
            ),
        ),
        ToolSpec(
            name=OperationType.DELETE.value,
            description="Delete data from a table",
            input_schema=_object({"table": _TABLE, "where": _WHERE}, required=["table", "where"]),
        ),
        ToolSpec(
            name=OperationType.BULK_INSERT.value,
            description="Insert multiple records into a table with a single statement",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "data": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Records to insert; all records must have the same columns",
                    },
                },
                required=["table", "data"],
            ),
        ),
        ToolSpec(
            name=OperationType.EXECUTE.value,
            description="Execute a custom SQL query (READ-ONLY by default)",
            input_schema=_object(
                {
                    "query": {"type": "string", "description": "SQL query to execute, with ? placeholders"},
                    "params": {"type": "array", "description": "Query parameters"},
                    "allowWrite": {"type": "boolean", "description": "Allow write operations (default: false)"},
                },
                required=["query"],
            ),
        ),
        ToolSpec(
            name=OperationType.DDL.value,
            description="Execute DDL (Data Definition Language) statements",
            input_schema=_object(
                {"statement": {"type": "string", "description": "DDL statement to execute"}},
                required=["statement"],
            ),
        ),
        ToolSpec(
            name=OperationType.TRANSACTION.value,
            description="Execute multiple operations in a transaction",
            input_schema=_object(
                {
                    "operations": {
                        "type": "array",
                        "minItems": 1,
                        "items": _object(
                            {
                                "type": {
                                    "type": "string",
                                    "enum": ["create", "update", "delete", "bulk_insert", "execute"],
                                },
                                "table": {"type": "string"},
                                "data": {"type": ["object", "array"]},
                                "where": {"type": "object"},
                                "query": {"type": "string"},
                                "params": {"type": "array"},
                                "allowWrite": {"type": "boolean"},
                            },
                            required=["type"],
                        ),
                        "description": "Operations to execute in transaction",
                    },
                },
                required=["operations"],
            ),
        ),
        ToolSpec(
            name=OperationType.UTILITY.value,
            description="Utility functions for database management",
            input_schema=_object(
                {
                    "action": {
                        "type": "string",
                        "enum": [action.value for action in UtilityAction],
                        "description": "Utility action to perform",
                    },
                    "table": {"type": "string", "description": "Table name (required for describe_table)"},
                },
                required=["action"],
            ),
        ),
        ToolSpec(
            name=OperationType.ADD_COLUMN.value,
            description="Add a column to a table",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "column": _COLUMN_DEFINITION,
                    "position": _object({
                        "first": {"type": "boolean", "description": "Place the column first"},
                        "after": {"type": "string", "description": "Place the column after this column"},
                    }),
                },
                required=["table", "column"],
            ),
        ),
        ToolSpec(
            name=OperationType.DROP_COLUMN.value,
            description="Drop a column from a table",
            input_schema=_object(
                {"table": _TABLE, "column": {"type": "string", "description": "Column to drop"}},
                required=["table", "column"],
            ),
        ),
        ToolSpec(
            name=OperationType.MODIFY_COLUMN.value,
            description="Change the definition of an existing column",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "column": {"type": "string", "description": "Column to modify"},
                    "newDefinition": _COLUMN_SPEC,
                },
                required=["table", "column", "newDefinition"],
            ),
        ),
        ToolSpec(
            name=OperationType.RENAME_COLUMN.value,
            description="Rename a column, optionally changing its definition",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "oldName": {"type": "string", "description": "Current column name"},
                    "newName": {"type": "string", "description": "New column name"},
                    "newDefinition": _COLUMN_SPEC,
                },
                required=["table", "oldName", "newName"],
            ),
        ),
        ToolSpec(
            name=OperationType.RENAME_TABLE.value,
            description="Rename a table",
            input_schema=_object(
                {
                    "oldName": {"type": "string", "description": "Current table name"},
                    "newName": {"type": "string", "description": "New table name"},
                },
                required=["oldName", "newName"],
            ),
        ),
        ToolSpec(
            name=OperationType.ADD_INDEX.value,
            description="Create an index on a table",
            input_schema=_object(
                {
                    "table": _TABLE,
                    "name": {"type": "string", "description": "Index name"},
                    "columns": {
                        "type": "array",
                        "items": {"type": "string"},
                        "minItems": 1,
                        "description": "Indexed columns, in order",
                    },
                    "type": {
                        "type": "string",
                        "enum": [index_type.value for index_type in IndexType],
                        "description": "Index type",
                    },
                    "unique": {"type": "boolean", "description": "Create a UNIQUE index"},
                },
                required=["table", "name", "columns"],
            ),
        ),
        ToolSpec(
            name=OperationType.DROP_INDEX.value,
            description="Drop an index from a table",
            input_schema=_object(
                {"table": _TABLE, "name": {"type": "string", "description": "Index name"}},
                required=["table", "name"],
            ),
        ),
    )
}


def resolve_enabled_tools(enabled: Optional[Iterable[str]] = None) -> List[str]:
    """Resolve an enabled-tools selection into catalog order.

    ``None`` or ``"all"`` enables every tool. Unknown names are logged and
    ignored.
    """
    if enabled is None:
        return list(TOOL_SPECS)

    requested = [enabled] if isinstance(enabled, str) else list(enabled)
    names = {name.strip() for item in requested for name in item.split(",") if name.strip()}
    if "all" in names:
        return list(TOOL_SPECS)

    unknown = sorted(names - set(TOOL_SPECS))
    if unknown:
        logger.warning(f"Ignoring unknown tools: {', '.join(unknown)}")
    return [name for name in TOOL_SPECS if name in names]
