"""SQL fragment builders.

Stateless helpers that turn caller input into SQL fragments. Identifiers
are validated and backtick-quoted; values become ``?`` placeholders with
their parameters returned alongside. Column definitions are the only
place literals are written into SQL text, and only for the narrow set of
default/comment values checked here.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from sqlgate.common.exceptions import ErrorCode, validation_error
from sqlgate.operations.schema import ColumnSpec
from sqlgate.query_builder.validators import (
    is_valid_identifier,
    scan_value_for_injection_patterns,
    validate_column_name,
    validate_column_type,
)

_ORDER_BY_CHARS = re.compile(r"[A-Za-z0-9_,\s]*")
_ORDER_BY_TERM = re.compile(r"\s*([A-Za-z0-9_]+)(?:\s+(ASC|DESC))?\s*", re.IGNORECASE)
_CURRENT_TIMESTAMP = re.compile(r"CURRENT_TIMESTAMP(\(\s*[0-6]\s*\))?", re.IGNORECASE)

_SCALAR_TYPES = (str, int, float, bool)


@dataclass(frozen=True)
class WhereClause:
    """A rendered WHERE clause and its bound parameters.

    ``clause`` includes the ``WHERE`` keyword, or is empty when there are
    no conditions.
    """

    clause: str = ""
    params: List[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.clause)


def quote_identifier(name: str) -> str:
    if not is_valid_identifier(name):
        raise validation_error(
            "Invalid identifier",
            value=name,
            error_code=ErrorCode.INVALID_IDENTIFIER,
        )
    return f"`{name}`"


def _check_filter_value(column: str, value: Any) -> None:
    if not isinstance(value, _SCALAR_TYPES):
        raise validation_error(
            f"Unsupported value type for column '{column}'",
            field=column,
            value=type(value).__name__,
        )
    if scan_value_for_injection_patterns(value):
        raise validation_error(
            f"Potential SQL injection detected in where condition for column '{column}'",
            field=column,
            error_code=ErrorCode.INJECTION_DETECTED,
        )


def build_where_clause(where: Optional[Mapping[str, Any]]) -> WhereClause:
    """Build a conjunctive WHERE clause from a column -> value mapping.

    Terms follow the mapping's insertion order. ``None`` renders
    ``IS NULL``, a list renders ``IN (?, ...)`` and any other value
    renders ``= ?``.

    Args:
        where: Column to value mapping, may be empty

    Returns:
        WhereClause with one parameter per placeholder

    Raises:
        ValidationError: On an invalid column, an empty list, a nested
            value or a value flagged by the injection scanner
    """
    if not where:
        return WhereClause()

    if not isinstance(where, Mapping):
        raise validation_error("Invalid where conditions", field="where")

    conditions: List[str] = []
    params: List[Any] = []

    for column, value in where.items():
        validate_column_name(column)

        if value is None:
            conditions.append(f"`{column}` IS NULL")
        elif isinstance(value, (list, tuple)):
            if not value:
                raise validation_error(
                    f"Empty value list for column '{column}'",
                    field=column,
                    hint="Provide at least one value for an IN filter",
                )
            for item in value:
                _check_filter_value(column, item)
            placeholders = ",".join("?" for _ in value)
            conditions.append(f"`{column}` IN ({placeholders})")
            params.extend(value)
        else:
            _check_filter_value(column, value)
            conditions.append(f"`{column}` = ?")
            params.append(value)

    return WhereClause(clause="WHERE " + " AND ".join(conditions), params=params)


def escape_string_literal(value: str) -> str:
    """Render a single-quoted SQL string literal.

    Single quotes and backslashes are doubled. NUL characters are
    rejected.
    """
    if "\x00" in value:
        raise validation_error("String literal contains a NUL character")
    escaped = value.replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def render_default(value: Any) -> str:
    """Render a column DEFAULT literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise validation_error(
                "Default value must be a finite number",
                field="default",
                value=value,
            )
        return str(value)
    if isinstance(value, str):
        if _CURRENT_TIMESTAMP.fullmatch(value.strip()):
            return value.strip().upper().replace(" ", "")
        return escape_string_literal(value)
    raise validation_error(
        "Default value must be a string, number, boolean or null",
        field="default",
        value=type(value).__name__,
    )


def build_column_definition(column: ColumnSpec, name: Optional[str] = None) -> str:
    """Render a column definition fragment.

    Produces ``\\`name\\` TYPE [NOT NULL|NULL] [DEFAULT ...]
    [AUTO_INCREMENT] [COMMENT '...']``.

    Args:
        column: Column attributes; a ColumnDefinition carries its own name
        name: Column name, required when ``column`` has no name

    Raises:
        ValidationError: On an invalid name, type, default or comment
    """
    column_name = name or getattr(column, "name", None)
    validate_column_name(column_name)

    parts = [f"`{column_name}`", validate_column_type(column.type)]

    if column.nullable is True:
        parts.append("NULL")
    elif column.nullable is False:
        parts.append("NOT NULL")

    if column.has_default:
        parts.append(f"DEFAULT {render_default(column.default)}")

    if column.auto_increment:
        parts.append("AUTO_INCREMENT")

    if column.comment is not None:
        parts.append(f"COMMENT {escape_string_literal(column.comment)}")

    return " ".join(parts)


def build_order_by(text: str) -> str:
    """Validate and normalize an ORDER BY list.

    Input such as ``"name DESC, id"`` becomes ``"`name` DESC, `id`"``.
    Any character outside letters, digits, underscore, comma and
    whitespace rejects the whole input.

    Raises:
        ValidationError: On a disallowed character or malformed term
    """
    if not isinstance(text, str) or not _ORDER_BY_CHARS.fullmatch(text):
        raise validation_error(
            "Invalid orderBy: contains illegal characters",
            field="orderBy",
            value=text,
            error_code=ErrorCode.INVALID_IDENTIFIER,
            hint="Use comma separated column names with optional ASC or DESC",
        )

    terms: List[str] = []
    for raw_term in text.split(","):
        match = _ORDER_BY_TERM.fullmatch(raw_term)
        if not match:
            raise validation_error(
                "Invalid orderBy term",
                field="orderBy",
                value=raw_term.strip(),
                hint="Use comma separated column names with optional ASC or DESC",
            )
        column, direction = match.groups()
        terms.append(f"`{column}` {direction.upper()}" if direction else f"`{column}`")

    return ", ".join(terms)


def build_assignments(data: Dict[str, Any]) -> List[str]:
    """Render ``\\`col\\` = ?`` for each key of ``data``."""
    assignments = []
    for column in data:
        validate_column_name(column)
        assignments.append(f"`{column}` = ?")
    return assignments
