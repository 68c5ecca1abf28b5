"""Query builder module: validation and SQL generation.

Builders turn operation models into parameterized SQL but do NOT execute
anything; that is the execution engine's job.

Organization:
    - validators: identifier, value, raw query and type checks
    - clauses: WHERE, ORDER BY, SET and column definition fragments
    - placeholders: ``?`` placeholder counting and paramstyle rendering
    - compiler: operation -> CompiledPlan dispatch table

Example:
    >>> from sqlgate.query_builder import compile_operation
    >>> plan = compile_operation({"type": "read", "table": "users", "where": {"id": 5}})
    >>> plan.statements[0].sql
    'SELECT * FROM `users` WHERE `id` = ?'
"""

from sqlgate.query_builder.clauses import (
    WhereClause,
    build_column_definition,
    build_order_by,
    build_where_clause,
    quote_identifier,
)
from sqlgate.query_builder.compiler import (
    COMPILERS,
    CompiledPlan,
    CompiledStatement,
    IntrospectionRequest,
    SchemaCheck,
    compile_operation,
)
from sqlgate.query_builder.placeholders import count_placeholders, render_paramstyle
from sqlgate.query_builder.validators import (
    guard_schema,
    is_valid_identifier,
    scan_raw_query,
    scan_value_for_injection_patterns,
    validate_column_name,
    validate_column_type,
    validate_ddl_statement,
    validate_index_name,
    validate_table_name,
)

__all__ = [
    "WhereClause",
    "build_column_definition",
    "build_order_by",
    "build_where_clause",
    "quote_identifier",
    "COMPILERS",
    "CompiledPlan",
    "CompiledStatement",
    "IntrospectionRequest",
    "SchemaCheck",
    "compile_operation",
    "count_placeholders",
    "render_paramstyle",
    "guard_schema",
    "is_valid_identifier",
    "scan_raw_query",
    "scan_value_for_injection_patterns",
    "validate_column_name",
    "validate_column_type",
    "validate_ddl_statement",
    "validate_index_name",
    "validate_table_name",
]
