"""Operation compiler.

Turns an operation model into a :class:`CompiledPlan`: one or more
parameterized statements plus how the engine should run them. All
validation happens here, before any connection is touched; a plan that
compiles contains only validated identifiers, ``?`` placeholders and
bound parameters, apart from the caller's own SQL text for ``execute``
and ``ddl``.

Compilation is driven by a single table mapping each operation kind to
its compile function.
"""

from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import ConfigDict, Field

from sqlgate.common.exceptions import ErrorCode, SQLGateError, validation_error
from sqlgate.constants.sql import (
    MAX_READ_LIMIT,
    TRANSACTION_STEP_TYPES,
    IndexType,
    OperationType,
    UtilityAction,
)
from sqlgate.observability import ToolCallContext, resolve_request_context
from sqlgate.operations import (
    AddColumn,
    AddIndex,
    BaseOperation,
    BulkInsert,
    Create,
    DDL,
    Delete,
    DropColumn,
    DropIndex,
    Execute,
    ListObjects,
    ModifyColumn,
    Read,
    RenameColumn,
    RenameTable,
    Transaction,
    Update,
    Utility,
    parse_operation,
)
from sqlgate.query_builder.clauses import (
    build_assignments,
    build_column_definition,
    build_order_by,
    build_where_clause,
    quote_identifier,
)
from sqlgate.query_builder.placeholders import count_placeholders
from sqlgate.query_builder.validators import (
    guard_schema,
    scan_raw_query,
    validate_column_name,
    validate_ddl_statement,
    validate_index_name,
    validate_table_name,
)
from sqlgate.types.base import SQLGateModel

CheckKind = Literal["table_exists", "table_absent", "column_exists", "column_absent"]


class SchemaCheck(SQLGateModel):
    """Existence check run on the statement's connection before it executes."""

    kind: CheckKind
    table: str
    column: Optional[str] = None


class CompiledStatement(SQLGateModel):
    """SQL text with ``?`` placeholders and its ordered parameters.

    Attributes:
        sql: Statement text; values only appear as placeholders
        params: Parameters in placeholder order
        description: Human readable summary, reported per transaction step
        prechecks: Existence checks to run first, in order
        returns_rows: Whether the statement is expected to produce rows
    """

    sql: str
    params: List[Any] = Field(default_factory=list)
    description: str = ""
    prechecks: List[SchemaCheck] = Field(default_factory=list)
    returns_rows: bool = False


class IntrospectionRequest(SQLGateModel):
    """Catalog lookup answered through the database inspector."""

    action: str
    table: Optional[str] = None


class CompiledPlan(SQLGateModel):
    """Everything the engine needs to run one operation.

    Attributes:
        operation_type: Kind of the source operation
        statements: Statements in execution order
        transactional: Run all statements inside one BEGIN/COMMIT
        retryable: Whether transient failures may be retried
        table: Primary table, for logging and result envelopes
        introspection: Set for list/utility operations instead of statements
    """

    model_config = ConfigDict(use_enum_values=False)

    operation_type: OperationType
    statements: List[CompiledStatement] = Field(default_factory=list)
    transactional: bool = False
    retryable: bool = True
    table: Optional[str] = None
    introspection: Optional[IntrospectionRequest] = None


def _quoted(names: List[str]) -> str:
    return ", ".join(quote_identifier(name) for name in names)


def _check_data(data: Mapping[str, Any], field: str = "data") -> List[str]:
    if not data:
        raise validation_error(
            f"{field} must contain at least one column",
            field=field,
            error_code=ErrorCode.MISSING_PARAMETER,
        )
    columns = []
    for column, value in data.items():
        validate_column_name(column)
        if isinstance(value, (dict, list, tuple, set)):
            raise validation_error(
                f"Unsupported value type for column '{column}'",
                field=column,
                value=type(value).__name__,
            )
        columns.append(column)
    return columns


def _require_where(where: Optional[Mapping[str, Any]], verb: str) -> None:
    if not where:
        raise validation_error(
            f"WHERE clause is required for {verb} operations",
            field="where",
            error_code=ErrorCode.MISSING_PARAMETER,
            hint=f"Provide a non-empty 'where' object to limit the rows a {verb} affects",
        )


def _check_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise validation_error(f"{field} must be an integer", field=field, value=value)
    return value


# ---------------------------------------------------------------------------
# Data operations
# ---------------------------------------------------------------------------

def compile_read(op: Read) -> CompiledPlan:
    table = validate_table_name(op.table)

    column_sql = "*"
    if op.columns:
        column_sql = _quoted([validate_column_name(column) for column in op.columns])

    sql = f"SELECT {column_sql} FROM `{table}`"
    where = build_where_clause(op.where)
    if where:
        sql += f" {where.clause}"

    if op.order_by:
        sql += f" ORDER BY {build_order_by(op.order_by)}"

    limit = op.limit
    if limit is not None:
        limit = _check_int(limit, "limit")
        if not 1 <= limit <= MAX_READ_LIMIT:
            raise validation_error(
                f"Invalid limit value. Must be between 1 and {MAX_READ_LIMIT}",
                field="limit",
                value=limit,
            )

    offset = op.offset
    if offset is not None:
        offset = _check_int(offset, "offset")
        if offset < 0:
            raise validation_error(
                "Invalid offset value. Must be non-negative",
                field="offset",
                value=offset,
            )

    if limit is not None:
        sql += f" LIMIT {limit}"
    if offset:
        # OFFSET needs a LIMIT in MySQL
        if limit is None:
            sql += f" LIMIT {MAX_READ_LIMIT}"
        sql += f" OFFSET {offset}"

    statement = CompiledStatement(
        sql=sql,
        params=where.params,
        description=f"Read from table '{table}'",
        returns_rows=True,
    )
    return CompiledPlan(operation_type=OperationType.READ, statements=[statement], table=table)


def compile_create(op: Create) -> CompiledPlan:
    table = validate_table_name(op.table)
    columns = _check_data(op.data)

    placeholders = ",".join("?" for _ in columns)
    statement = CompiledStatement(
        sql=f"INSERT INTO `{table}` ({_quoted(columns)}) VALUES ({placeholders})",
        params=[op.data[column] for column in columns],
        description=f"Insert into table '{table}'",
    )
    return CompiledPlan(operation_type=OperationType.CREATE, statements=[statement], table=table)


def compile_update(op: Update) -> CompiledPlan:
    table = validate_table_name(op.table)
    columns = _check_data(op.data)
    _require_where(op.where, "UPDATE")

    where = build_where_clause(op.where)
    statement = CompiledStatement(
        sql=f"UPDATE `{table}` SET {', '.join(build_assignments(op.data))} {where.clause}",
        params=[op.data[column] for column in columns] + where.params,
        description=f"Update table '{table}'",
    )
    return CompiledPlan(operation_type=OperationType.UPDATE, statements=[statement], table=table)


def compile_delete(op: Delete) -> CompiledPlan:
    table = validate_table_name(op.table)
    _require_where(op.where, "DELETE")

    where = build_where_clause(op.where)
    statement = CompiledStatement(
        sql=f"DELETE FROM `{table}` {where.clause}",
        params=where.params,
        description=f"Delete from table '{table}'",
    )
    return CompiledPlan(operation_type=OperationType.DELETE, statements=[statement], table=table)


def compile_bulk_insert(op: BulkInsert) -> CompiledPlan:
    """Compile a multi-row INSERT.

    Column order comes from the first record. Every other record must have
    exactly the same keys, in any order.
    """
    table = validate_table_name(op.table)
    if not op.records:
        raise validation_error(
            "Bulk insert data must be a non-empty array",
            field="records",
            error_code=ErrorCode.MISSING_PARAMETER,
        )

    columns = _check_data(op.records[0], field="records[0]")
    expected = set(columns)

    params: List[Any] = []
    for index, record in enumerate(op.records):
        if set(record) != expected:
            raise validation_error(
                f"Record at index {index} has different structure than the first record",
                field=f"records[{index}]",
                hint=f"Every record needs exactly the columns: {', '.join(columns)}",
            )
        if index:
            _check_data(record, field=f"records[{index}]")
        params.extend(record[column] for column in columns)

    row = "(" + ",".join("?" for _ in columns) + ")"
    statement = CompiledStatement(
        sql=f"INSERT INTO `{table}` ({_quoted(columns)}) VALUES {','.join(row for _ in op.records)}",
        params=params,
        description=f"Bulk insert {len(op.records)} records into table '{table}'",
    )
    return CompiledPlan(operation_type=OperationType.BULK_INSERT, statements=[statement], table=table)


# ---------------------------------------------------------------------------
# Raw SQL
# ---------------------------------------------------------------------------

def compile_execute(op: Execute) -> CompiledPlan:
    query = scan_raw_query(op.query, allow_write=op.allow_write)
    params = list(op.params or [])

    expected = count_placeholders(query)
    if expected != len(params):
        raise validation_error(
            f"Query has {expected} placeholders but {len(params)} parameters were supplied",
            field="params",
            error_code=ErrorCode.MISSING_PARAMETER,
        )

    statement = CompiledStatement(sql=query, params=params, description="Execute query")
    return CompiledPlan(operation_type=OperationType.EXECUTE, statements=[statement])


def compile_ddl(op: DDL) -> CompiledPlan:
    statement = CompiledStatement(
        sql=validate_ddl_statement(op.statement),
        description="Execute DDL statement",
    )
    return CompiledPlan(operation_type=OperationType.DDL, statements=[statement])


# ---------------------------------------------------------------------------
# Schema modification
# ---------------------------------------------------------------------------

def _schema_plan(kind: OperationType, table: str, statement: CompiledStatement) -> CompiledPlan:
    return CompiledPlan(
        operation_type=kind,
        statements=[statement],
        transactional=True,
        retryable=False,
        table=table,
    )


def compile_add_column(op: AddColumn) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    definition = build_column_definition(op.column)

    if op.position is not None:
        if op.position.first:
            definition += " FIRST"
        else:
            definition += f" AFTER `{validate_column_name(op.position.after)}`"

    statement = CompiledStatement(
        sql=f"ALTER TABLE `{table}` ADD COLUMN {definition}",
        description=f"Add column '{op.column.name}' to table '{table}'",
    )
    return _schema_plan(OperationType.ADD_COLUMN, table, statement)


def compile_drop_column(op: DropColumn) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    column = validate_column_name(op.column)

    statement = CompiledStatement(
        sql=f"ALTER TABLE `{table}` DROP COLUMN `{column}`",
        description=f"Drop column '{column}' from table '{table}'",
        prechecks=[
            SchemaCheck(kind="table_exists", table=table),
            SchemaCheck(kind="column_exists", table=table, column=column),
        ],
    )
    return _schema_plan(OperationType.DROP_COLUMN, table, statement)


def compile_modify_column(op: ModifyColumn) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    column = validate_column_name(op.column)

    statement = CompiledStatement(
        sql=f"ALTER TABLE `{table}` MODIFY COLUMN {build_column_definition(op.new_definition, name=column)}",
        description=f"Modify column '{column}' in table '{table}'",
    )
    return _schema_plan(OperationType.MODIFY_COLUMN, table, statement)


def compile_rename_column(op: RenameColumn) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    old_name = validate_column_name(op.old_name)
    new_name = validate_column_name(op.new_name)

    if op.new_definition is not None:
        sql = (
            f"ALTER TABLE `{table}` CHANGE COLUMN `{old_name}` "
            f"{build_column_definition(op.new_definition, name=new_name)}"
        )
    else:
        sql = f"ALTER TABLE `{table}` RENAME COLUMN `{old_name}` TO `{new_name}`"

    statement = CompiledStatement(
        sql=sql,
        description=f"Rename column '{old_name}' to '{new_name}' in table '{table}'",
        prechecks=[
            SchemaCheck(kind="table_exists", table=table),
            SchemaCheck(kind="column_exists", table=table, column=old_name),
            SchemaCheck(kind="column_absent", table=table, column=new_name),
        ],
    )
    return _schema_plan(OperationType.RENAME_COLUMN, table, statement)


def compile_rename_table(op: RenameTable) -> CompiledPlan:
    guard_schema(op.old_name)
    guard_schema(op.new_name)
    old_name = validate_table_name(op.old_name)
    new_name = validate_table_name(op.new_name)

    statement = CompiledStatement(
        sql=f"ALTER TABLE `{old_name}` RENAME TO `{new_name}`",
        description=f"Rename table '{old_name}' to '{new_name}'",
        prechecks=[
            SchemaCheck(kind="table_exists", table=old_name),
            SchemaCheck(kind="table_absent", table=new_name),
        ],
    )
    return _schema_plan(OperationType.RENAME_TABLE, old_name, statement)


def compile_add_index(op: AddIndex) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    name = validate_index_name(op.name)
    if not op.columns:
        raise validation_error(
            "Index requires at least one column",
            field="columns",
            error_code=ErrorCode.MISSING_PARAMETER,
        )
    columns = [validate_column_name(column) for column in op.columns]

    index_type = IndexType(op.index_type) if op.index_type else None
    prefix = ""
    using = ""
    if index_type in (IndexType.FULLTEXT, IndexType.SPATIAL):
        if op.unique:
            raise validation_error(
                f"{index_type.value} indexes cannot be UNIQUE",
                field="unique",
            )
        prefix = f"{index_type.value} "
    else:
        if op.unique:
            prefix = "UNIQUE "
        if index_type is not None:
            using = f" USING {index_type.value}"

    statement = CompiledStatement(
        sql=f"CREATE {prefix}INDEX `{name}` ON `{table}` ({_quoted(columns)}){using}",
        description=f"Add index '{name}' on table '{table}'",
    )
    return _schema_plan(OperationType.ADD_INDEX, table, statement)


def compile_drop_index(op: DropIndex) -> CompiledPlan:
    guard_schema(op.table)
    table = validate_table_name(op.table)
    name = validate_index_name(op.name)

    statement = CompiledStatement(
        sql=f"DROP INDEX `{name}` ON `{table}`",
        description=f"Drop index '{name}' from table '{table}'",
    )
    return _schema_plan(OperationType.DROP_INDEX, table, statement)


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

def compile_list(op: ListObjects) -> CompiledPlan:
    if op.table is not None:
        table = validate_table_name(op.table)
        request = IntrospectionRequest(action="list_columns", table=table)
    else:
        table = None
        request = IntrospectionRequest(action="list_tables")
    return CompiledPlan(operation_type=OperationType.LIST, table=table, introspection=request)


def compile_utility(op: Utility) -> CompiledPlan:
    action = UtilityAction(op.action)
    table = None
    if action == UtilityAction.DESCRIBE_TABLE:
        if not op.table:
            raise validation_error(
                "Table name required for describe_table",
                field="table",
                error_code=ErrorCode.MISSING_PARAMETER,
            )
        table = validate_table_name(op.table)
    return CompiledPlan(
        operation_type=OperationType.UTILITY,
        table=table,
        introspection=IntrospectionRequest(action=action.value, table=table),
    )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def compile_transaction(op: Transaction) -> CompiledPlan:
    """Compile every step up front.

    Nothing is returned unless every step compiles, so a bad step never
    leaves earlier steps half-run.
    """
    if not op.operations:
        raise validation_error(
            "Transaction must contain at least one operation",
            field="operations",
            error_code=ErrorCode.MISSING_PARAMETER,
        )

    statements: List[CompiledStatement] = []
    for number, raw_step in enumerate(op.operations, start=1):
        try:
            step = parse_operation(raw_step)
            kind = step.operation_type
            if kind == OperationType.TRANSACTION:
                raise validation_error("Nested transactions are not supported", field="type")
            if kind not in TRANSACTION_STEP_TYPES:
                raise validation_error(
                    f"Unsupported operation type in transaction: {kind.value}",
                    field="type",
                    value=kind.value,
                    hint="Transactions accept create, update, delete, bulk_insert and execute steps",
                )
            plan = COMPILERS[kind](step)
        except SQLGateError as exc:
            raise type(exc)(
                f"Transaction step {number}: {exc.message}",
                error_code=exc.error_code,
                details={**exc.details, "step": number},
                hint=exc.hint,
                cause=exc,
            ) from exc

        for statement in plan.statements:
            statements.append(
                statement.model_copy(update={"description": f"Step {number}: {statement.description}"})
            )

    return CompiledPlan(
        operation_type=OperationType.TRANSACTION,
        statements=statements,
        transactional=True,
        retryable=True,
    )


COMPILERS: Dict[OperationType, Callable[[Any], CompiledPlan]] = {
    OperationType.READ: compile_read,
    OperationType.CREATE: compile_create,
    OperationType.UPDATE: compile_update,
    OperationType.DELETE: compile_delete,
    OperationType.BULK_INSERT: compile_bulk_insert,
    OperationType.EXECUTE: compile_execute,
    OperationType.DDL: compile_ddl,
    OperationType.ADD_COLUMN: compile_add_column,
    OperationType.DROP_COLUMN: compile_drop_column,
    OperationType.MODIFY_COLUMN: compile_modify_column,
    OperationType.RENAME_COLUMN: compile_rename_column,
    OperationType.RENAME_TABLE: compile_rename_table,
    OperationType.ADD_INDEX: compile_add_index,
    OperationType.DROP_INDEX: compile_drop_index,
    OperationType.TRANSACTION: compile_transaction,
    OperationType.LIST: compile_list,
    OperationType.UTILITY: compile_utility,
}


def compile_operation(
    operation: Union[BaseOperation, Mapping[str, Any]],
    ctx: Optional[ToolCallContext] = None,
) -> CompiledPlan:
    """Compile an operation model or ``type``-tagged payload.

    Args:
        operation: Operation model or mapping with a ``type`` tag
        ctx: Request context used for logging

    Returns:
        CompiledPlan ready for the execution engine

    Raises:
        ValidationError: On any malformed or disallowed input
    """
    ctx = resolve_request_context(ctx)
    logger = ctx.get_logger("compiler")

    op = parse_operation(operation)
    kind = op.operation_type
    try:
        plan = COMPILERS[kind](op)
    except SQLGateError as exc:
        logger.warning(
            f"Compilation of {kind.value} operation failed: {exc.message}",
            extra={"operation_type": kind.value, "error_code": exc.error_code.value},
        )
        raise

    logger.debug(
        f"Compiled {kind.value} operation into {len(plan.statements)} statement(s)",
        extra={"operation_type": kind.value, "table": plan.table},
    )
    return plan
