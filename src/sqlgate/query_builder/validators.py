"""Identifier and value validators.

Everything here is a pure function. Identifier checks fail closed: a name
is either made of ASCII letters, digits and underscores, or it is
rejected; nothing is stripped or rewritten.

Bound parameters are what keep data values out of SQL text. The pattern
scanners in this module are an extra layer that rejects obviously hostile
input early, mainly for the raw ``execute`` and ``ddl`` paths where the
caller supplies SQL text directly.
"""

import re
from typing import Any, Optional, Pattern, Tuple

from sqlgate.common.exceptions import ErrorCode, validation_error
from sqlgate.constants.sql import ALLOWED_BASE_TYPES, PROTECTED_SCHEMAS

IDENTIFIER_PATTERN: Pattern[str] = re.compile(r"[A-Za-z0-9_]+")

# Heuristics applied to caller-supplied filter values
VALUE_INJECTION_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(
        r"\b(union|select|insert|update|delete|drop|create|alter|exec|execute|script|declare|truncate)\b",
        re.IGNORECASE,
    ),
    re.compile(r"(--|/\*|\*/)"),
    re.compile(r"\b(or|and)\b.*=.*\b(or|and)\b", re.IGNORECASE),
)

WRITE_VERB_PATTERN: Pattern[str] = re.compile(
    r"\b(insert|update|delete|drop|create|alter|truncate|exec|execute)\b",
    re.IGNORECASE,
)

# Rejected in raw queries even when writes are allowed
DANGEROUS_QUERY_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r";\s*(drop|delete|update|insert)\b", re.IGNORECASE),
    re.compile(r"(/\*|\*/|--)"),
    re.compile(r"(union\s+select|select\s+\*\s+from\s+information_schema)", re.IGNORECASE),
)

DDL_PATTERN: Pattern[str] = re.compile(
    r"\b(create|alter|drop|truncate)\s+(table|index|view|procedure|function|trigger)\b",
    re.IGNORECASE,
)

_TYPE_PATTERN: Pattern[str] = re.compile(
    r"\s*(?P<base>[A-Za-z]+)"
    r"(?:\s*\(\s*(?P<length>\d+)\s*(?:,\s*(?P<scale>\d+)\s*)?\))?"
    r"(?P<modifiers>(?:\s+(?:UNSIGNED|ZEROFILL))*)\s*",
    re.IGNORECASE,
)
_ENUM_TYPE_PATTERN: Pattern[str] = re.compile(
    r"\s*(?P<base>ENUM|SET)\s*\(\s*"
    r"(?P<values>'[A-Za-z0-9_ .-]*'(?:\s*,\s*'[A-Za-z0-9_ .-]*')*)"
    r"\s*\)\s*",
    re.IGNORECASE,
)


def is_valid_identifier(name: Any) -> bool:
    """Return True if ``name`` is a non-empty string of [A-Za-z0-9_]."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.fullmatch(name) is not None


def _validate_identifier(name: Any, kind: str) -> str:
    if not isinstance(name, str) or not name:
        raise validation_error(
            f"Invalid {kind} name",
            field=kind,
            value=name,
            error_code=ErrorCode.INVALID_IDENTIFIER,
        )
    if not is_valid_identifier(name):
        raise validation_error(
            f"Invalid {kind} name: contains illegal characters",
            field=kind,
            value=name,
            error_code=ErrorCode.INVALID_IDENTIFIER,
            hint="Identifiers may only contain letters, digits and underscores",
        )
    return name


def validate_table_name(name: Any) -> str:
    return _validate_identifier(name, "table")


def validate_column_name(name: Any) -> str:
    return _validate_identifier(name, "column")


def validate_index_name(name: Any) -> str:
    return _validate_identifier(name, "index")


def scan_value_for_injection_patterns(value: Any) -> bool:
    """Return True if a string value looks like an injection attempt.

    Non-string values are never flagged.
    """
    if not isinstance(value, str):
        return False
    return any(pattern.search(value) for pattern in VALUE_INJECTION_PATTERNS)


def scan_raw_query(query: Any, allow_write: bool = False) -> str:
    """Check caller-supplied SQL for the ``execute`` operation.

    Args:
        query: SQL text
        allow_write: Whether data-modifying verbs are permitted

    Returns:
        The unchanged query

    Raises:
        ValidationError: On empty text, a write verb without ``allow_write``,
            or a stacked-statement, comment or exfiltration pattern
    """
    if not isinstance(query, str) or not query.strip():
        raise validation_error(
            "Query is required",
            field="query",
            error_code=ErrorCode.MISSING_PARAMETER,
        )

    if not allow_write and WRITE_VERB_PATTERN.search(query):
        raise validation_error(
            "Write operations are not allowed",
            field="query",
            error_code=ErrorCode.WRITE_NOT_ALLOWED,
            hint="Set allowWrite: true to enable write statements",
        )

    for pattern in DANGEROUS_QUERY_PATTERNS:
        if pattern.search(query):
            raise validation_error(
                "Potentially dangerous SQL patterns detected in query",
                field="query",
                error_code=ErrorCode.INJECTION_DETECTED,
                hint="Remove comments, chained statements and information_schema scans",
            )

    return query


def validate_ddl_statement(statement: Any) -> str:
    """Accept only CREATE/ALTER/DROP/TRUNCATE of a known object kind."""
    if not isinstance(statement, str) or not DDL_PATTERN.search(statement):
        raise validation_error(
            "Invalid DDL statement. Only CREATE, ALTER, DROP, TRUNCATE operations are allowed",
            field="statement",
            error_code=ErrorCode.VALIDATION_ERROR,
            hint="Use e.g. CREATE TABLE, ALTER TABLE, DROP INDEX",
        )
    return statement


def validate_column_type(type_str: Any) -> str:
    """Validate a column type against the allowed base types.

    Accepts ``BASE[(n[,m])] [UNSIGNED] [ZEROFILL]`` and
    ``ENUM('a','b')`` / ``SET('a','b')`` with plain quoted values.

    Returns:
        Normalized type text with an upper-case base type

    Raises:
        ValidationError: If the type is not allowed or malformed
    """
    if not isinstance(type_str, str):
        raise validation_error(
            "Column type is required",
            field="type",
            error_code=ErrorCode.INVALID_TYPE,
        )

    enum_match = _ENUM_TYPE_PATTERN.fullmatch(type_str)
    if enum_match:
        values = re.sub(r"\s*,\s*", ",", enum_match.group("values"))
        return f"{enum_match.group('base').upper()}({values})"

    match = _TYPE_PATTERN.fullmatch(type_str)
    base = match.group("base").upper() if match else None
    if base is None or base not in ALLOWED_BASE_TYPES or base in ("ENUM", "SET"):
        raise validation_error(
            f"Unsupported column type: {type_str}",
            field="type",
            value=type_str,
            error_code=ErrorCode.INVALID_TYPE,
            hint=f"Allowed base types: {', '.join(ALLOWED_BASE_TYPES)}",
        )

    rendered = base
    if match.group("length") is not None:
        rendered += f"({match.group('length')}"
        if match.group("scale") is not None:
            rendered += f",{match.group('scale')}"
        rendered += ")"
    modifiers = match.group("modifiers").split()
    if modifiers:
        rendered += " " + " ".join(m.upper() for m in modifiers)
    return rendered


def guard_schema(table: Optional[str]) -> None:
    """Reject schema changes aimed at a protected system schema.

    Both a bare name (``mysql``) and a qualified one (``mysql.user``) are
    matched case-insensitively.
    """
    if not isinstance(table, str):
        return
    schema = table.split(".", 1)[0].strip().strip("`").lower()
    if table.lower() in PROTECTED_SCHEMAS or schema in PROTECTED_SCHEMAS:
        raise validation_error(
            f"Modification of protected schema '{table}' is not allowed",
            field="table",
            value=table,
            error_code=ErrorCode.PROTECTED_SCHEMA,
        )
