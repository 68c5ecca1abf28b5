import threading
import time
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.pool import QueuePool

from sqlgate.common.exceptions import (
    ConfigurationError,
    SQLGateError,
    conflict_error,
    not_found_error,
    validation_error,
)
from sqlgate.compute.errors import is_retryable_error, translate_error
from sqlgate.compute.types import ExecutionResult, StepResult
from sqlgate.constants.sql import UtilityAction
from sqlgate.logging import get_logger
from sqlgate.observability import ToolCallContext, resolve_request_context
from sqlgate.query_builder.compiler import (
    CompiledPlan,
    CompiledStatement,
    IntrospectionRequest,
    SchemaCheck,
)
from sqlgate.query_builder.placeholders import render_paramstyle
from sqlgate.settings.database import DatabaseConfig
from sqlgate.utils.decorators import RetryPolicy, retry_call, traced

logger = get_logger(__name__)

WARMUP_CONNECTIONS = 5
TEST_CONNECTION_ATTEMPTS = 3
STATS_QUERY = (
    "SELECT COUNT(*), SUM(TABLE_ROWS) FROM information_schema.TABLES WHERE TABLE_SCHEMA = ?"
)


class SQLEngine:
    """SQLAlchemy-based execution engine for compiled plans.

    Owns a bounded connection pool and runs :class:`CompiledPlan` objects
    against it. Every attempt checks out a connection and returns it to the
    pool on all exit paths. Transactional plans run inside one
    ``BEGIN``/``COMMIT`` and roll back on any failure.

    Features:
        - QueuePool sized by ``connection_limit`` with no overflow, so
          callers block up to ``acquire_timeout`` for a free connection
        - Linear backoff retry for transient failures
        - Existence pre-checks on the statement's own connection
        - Driver errors translated into the sqlgate taxonomy

    Example:
        >>> engine = SQLEngine(DatabaseConfig.from_connection_string("mysql://root@localhost/app"))
        >>> result = engine.run_plan(compile_operation({"type": "read", "table": "users"}))
        >>> result.rows
    """

    def __init__(
        self,
        config: DatabaseConfig,
        engine: Optional[Engine] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the execution engine.

        Args:
            config: Connection and pool configuration
            engine: Pre-built SQLAlchemy engine; built lazily from ``config`` when omitted
            sleep: Sleep function used between retries
        """
        self.config = config
        self._engine: Optional[Engine] = engine
        self._engine_lock = threading.Lock()
        self._sleep = sleep
        self._connection_info: Dict[str, Any] = {
            "platform": "sqlite" if config.is_sqlite else "mysql",
            "host": config.host,
            "port": config.port,
            "database": config.database,
        }

    @property
    def engine(self) -> Engine:
        """Get or create the SQLAlchemy engine with lazy initialization."""
        engine = self._engine
        if engine is None:
            with self._engine_lock:
                if self._engine is None:
                    self._engine = self._create_engine()
                engine = self._engine
        return engine

    def _create_engine(self) -> Engine:
        """Create the SQLAlchemy engine and its connection pool.

        Raises:
            ConfigurationError: If the engine cannot be created
        """
        options: Dict[str, Any] = {
            "poolclass": QueuePool,
            "pool_pre_ping": True,
            "pool_size": self.config.connection_limit,
            "max_overflow": 0,
            "pool_timeout": self.config.acquire_timeout,
            "pool_recycle": int(self.config.idle_timeout),
        }
        if not self.config.is_sqlite:
            options["connect_args"] = {
                "connect_timeout": int(self.config.connect_timeout),
                "read_timeout": self.config.timeout,
                "write_timeout": self.config.timeout,
            }

        try:
            engine = create_engine(self.config.sqlalchemy_url(), **options)
        except Exception as exc:
            raise ConfigurationError(
                f"Failed to create database engine for {self.config.masked_url()}",
                hint="Check the connection string and that the database driver is installed",
                cause=exc,
            ) from exc

        logger.info(
            "Created database engine",
            extra={
                "db.url": self.config.masked_url(),
                "pool.size": str(self.config.connection_limit),
            },
        )
        return engine

    @contextmanager
    def _get_connection(self) -> Iterator[Connection]:
        """Check out a pooled connection and always return it."""
        conn = self.engine.connect()
        try:
            yield conn
        finally:
            conn.close()

    def _span_attributes(
        self,
        plan: CompiledPlan,
        ctx: Optional[ToolCallContext] = None,
    ) -> Dict[str, Any]:
        """Build OpenTelemetry span attributes for a plan."""
        attributes: Dict[str, Any] = {
            "db.system": self._connection_info.get("platform", "mysql"),
            "db.name": self.config.database or None,
            "db.operation": plan.operation_type.value,
            "db.statement.count": len(plan.statements),
            "sqlgate.plan.transactional": plan.transactional,
        }
        if plan.statements:
            statement = plan.statements[0].sql.strip()
            if len(statement) > 4096:
                statement = f"{statement[:4093]}..."
            attributes["db.statement"] = statement
        if plan.table:
            attributes["db.sql.table"] = plan.table
        if ctx is not None:
            attributes["sqlgate.request_id"] = ctx.request_id
        return attributes

    # ------------------------------------------------------------------
    # Plan execution
    # ------------------------------------------------------------------

    @traced(
        span_name="sqlgate.engine.run_plan",
        attribute_getter=lambda self, plan, ctx=None: self._span_attributes(plan, ctx),
    )
    def run_plan(
        self,
        plan: CompiledPlan,
        ctx: Optional[ToolCallContext] = None,
    ) -> ExecutionResult:
        """Run a compiled plan with retry.

        Retryable plans get ``max_retries`` attempts in total, waiting
        ``retry_delay * n`` seconds after failed attempt ``n``. Each attempt
        checks out a fresh connection. Schema changes run once.

        Args:
            plan: Output of the operation compiler
            ctx: Request context used for logging

        Returns:
            ExecutionResult for the plan

        Raises:
            SQLGateError: Translated failure of the last attempt
        """
        ctx = resolve_request_context(ctx)
        log = ctx.get_logger("engine")
        kind = plan.operation_type.value
        payload = {"operation_type": kind, "db.platform": str(self._connection_info["platform"])}

        if plan.introspection is not None and plan.introspection.action == UtilityAction.PING.value:
            return ExecutionResult(
                operation_type=plan.operation_type,
                info={"connected": self.test_connection(ctx)},
            )

        policy = RetryPolicy(
            max_attempts=self.config.max_retries if plan.retryable else 1,
            base_delay=self.config.retry_delay,
        )
        attempts_used = 0

        def attempt(number: int) -> ExecutionResult:
            nonlocal attempts_used
            attempts_used = number
            try:
                with self._get_connection() as conn:
                    if plan.introspection is not None:
                        return ExecutionResult(
                            operation_type=plan.operation_type,
                            info=self._introspect(conn, plan.introspection),
                        )
                    if plan.transactional:
                        return self._run_transaction(conn, plan, log)
                    return self._run_single(conn, plan)
            except SQLGateError:
                raise
            except Exception as exc:
                raise translate_error(exc, self.config) from exc

        def on_retry(number: int, delay: float, exc: Exception) -> None:
            log.warning(
                f"{kind} failed (attempt {number}/{policy.max_attempts}), retrying in {delay}s",
                extra={**payload, "error": str(exc)},
            )

        start_time = time.time()
        try:
            result = retry_call(
                attempt,
                policy=policy,
                retry_condition=is_retryable_error,
                on_retry=on_retry,
                sleep=self._sleep,
            )
        except SQLGateError as exc:
            duration = time.time() - start_time
            log.error(
                f"{kind} failed after {attempts_used} attempt(s)",
                extra={
                    **payload,
                    "duration.seconds": f"{duration:.6f}",
                    "error": str(exc),
                    "error_code": exc.error_code.value,
                },
            )
            raise

        duration = time.time() - start_time
        result.duration_seconds = duration
        result.attempts = attempts_used
        if attempts_used > 1:
            log.info(f"{kind} succeeded on attempt {attempts_used}/{policy.max_attempts}", extra=payload)
        log.info(
            "Plan executed",
            extra={
                **payload,
                "duration.seconds": f"{duration:.6f}",
                "affected_rows": str(result.affected_rows),
                "row_count": str(result.row_count),
            },
        )
        return result

    def _run_single(self, conn: Connection, plan: CompiledPlan) -> ExecutionResult:
        """Run statements without an explicit transaction, committing at the end."""
        result = ExecutionResult(operation_type=plan.operation_type)
        for statement in plan.statements:
            self._apply(result, self._execute_statement(conn, statement))
        conn.commit()
        return result

    def _run_transaction(self, conn: Connection, plan: CompiledPlan, log: Any) -> ExecutionResult:
        """Run all statements in one transaction.

        The first failing statement rolls back the whole transaction and is
        reported by its description.
        """
        result = ExecutionResult(operation_type=plan.operation_type)
        log.info(f"Transaction started with {len(plan.statements)} statement(s)")

        with conn.begin():
            for number, statement in enumerate(plan.statements, start=1):
                log.debug(f"Executing: {statement.description}")
                try:
                    outcome = self._execute_statement(conn, statement)
                except Exception as exc:
                    error = translate_error(exc, self.config)
                    failed = type(error)(
                        f"{statement.description} failed: {error.message}",
                        error_code=error.error_code,
                        details={**error.details, "step": number},
                        hint=error.hint,
                        cause=exc,
                        is_retryable=error.is_retryable,
                    )
                    log.warning("Transaction rolled back", extra={"step": str(number)})
                    raise failed from exc

                self._apply(result, outcome)
                result.steps.append(
                    StepResult(
                        step=number,
                        description=statement.description,
                        affected_rows=outcome.affected_rows,
                        insert_id=outcome.insert_id,
                    )
                )

        log.info("Transaction committed")
        return result

    @staticmethod
    def _apply(result: ExecutionResult, outcome: ExecutionResult) -> None:
        result.affected_rows += outcome.affected_rows
        if outcome.insert_id is not None:
            result.insert_id = outcome.insert_id
        if outcome.returns_rows:
            result.rows = outcome.rows
            result.returns_rows = True

    def _execute_statement(self, conn: Connection, statement: CompiledStatement) -> ExecutionResult:
        """Run one statement, its pre-checks first, on ``conn``."""
        self._run_prechecks(conn, statement.prechecks)

        if statement.params:
            sql = render_paramstyle(statement.sql, conn.dialect.paramstyle)
            cursor: CursorResult = conn.exec_driver_sql(sql, tuple(statement.params))
        else:
            cursor = conn.exec_driver_sql(statement.sql, execution_options={"no_parameters": True})

        outcome = ExecutionResult(operation_type="execute")
        if cursor.returns_rows:
            outcome.rows = [dict(row) for row in cursor.mappings().all()]
            outcome.returns_rows = True
            return outcome

        outcome.affected_rows = max(cursor.rowcount or 0, 0)
        insert_id = cursor.lastrowid
        if insert_id:
            outcome.insert_id = int(insert_id)
        return outcome

    def _run_prechecks(self, conn: Connection, checks: List[SchemaCheck]) -> None:
        """Raise NotFoundError/ConflictError before a schema change runs."""
        if not checks:
            return

        inspector = inspect(conn)
        for check in checks:
            if check.kind in ("table_exists", "table_absent"):
                exists = inspector.has_table(check.table)
                if check.kind == "table_exists" and not exists:
                    raise not_found_error(
                        f"Table '{check.table}' does not exist",
                        resource_type="table",
                        resource_name=check.table,
                        hint="Use the 'list' tool to see available tables",
                    )
                if check.kind == "table_absent" and exists:
                    raise conflict_error(
                        f"Table '{check.table}' already exists",
                        resource_type="table",
                        resource_name=check.table,
                    )
                continue

            columns = {column["name"].lower() for column in inspector.get_columns(check.table)}
            exists = (check.column or "").lower() in columns
            if check.kind == "column_exists" and not exists:
                raise not_found_error(
                    f"Column '{check.column}' does not exist in table '{check.table}'",
                    resource_type="column",
                    resource_name=check.column,
                    hint="Use 'describe_table' to see available columns",
                )
            if check.kind == "column_absent" and exists:
                raise conflict_error(
                    f"Column '{check.column}' already exists in table '{check.table}'",
                    resource_type="column",
                    resource_name=check.column,
                )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _describe_columns(self, conn: Connection, table: str) -> List[Dict[str, Any]]:
        inspector = inspect(conn)
        if not inspector.has_table(table):
            raise not_found_error(
                f"Table '{table}' does not exist",
                resource_type="table",
                resource_name=table,
                hint="Use the 'list' tool to see available tables",
            )

        primary_key = set(inspector.get_pk_constraint(table).get("constrained_columns") or [])
        columns = []
        for column in inspector.get_columns(table):
            columns.append({
                "name": column["name"],
                "type": str(column["type"]),
                "nullable": bool(column.get("nullable", True)),
                "default": column.get("default"),
                "key": "PRI" if column["name"] in primary_key else "",
                "extra": "auto_increment" if column.get("autoincrement") is True else "",
            })
        return columns

    def _database_stats(self, conn: Connection) -> Dict[str, Any]:
        """Table count, approximate row total and pool occupancy.

        MySQL reads ``information_schema.TABLES``, whose ``TABLE_ROWS`` is an
        estimate for InnoDB. Other dialects count rows table by table.
        """
        database = self.config.database
        if not database:
            raise validation_error(
                "No database selected",
                field="database",
                hint="Include a database name in the connection string",
            )

        if conn.dialect.name == "mysql":
            sql = render_paramstyle(STATS_QUERY, conn.dialect.paramstyle)
            tables, rows = conn.exec_driver_sql(sql, (database,)).one()
        else:
            names = inspect(conn).get_table_names()
            quote = conn.dialect.identifier_preparer.quote
            tables = len(names)
            rows = sum(
                conn.exec_driver_sql(
                    f"SELECT COUNT(*) FROM {quote(name)}", execution_options={"no_parameters": True}
                ).scalar_one()
                for name in names
            )

        return {
            "database": database,
            "tables": int(tables or 0),
            "rows": int(rows or 0),
            "pool": self.pool_status(),
        }

    def _introspect(self, conn: Connection, request: IntrospectionRequest) -> Dict[str, Any]:
        action = request.action

        if action == "list_tables":
            return {"tables": [{"name": name} for name in inspect(conn).get_table_names()]}
        if action in ("list_columns", UtilityAction.DESCRIBE_TABLE.value):
            return {"columns": self._describe_columns(conn, request.table)}
        if action == UtilityAction.VERSION.value:
            version_info = conn.dialect.server_version_info
            version = ".".join(str(part) for part in version_info) if version_info else "Unknown"
            return {"version": version}
        if action == UtilityAction.STATS.value:
            return self._database_stats(conn)

        raise ConfigurationError(f"Unknown introspection action: {action}")

    # ------------------------------------------------------------------
    # Pool lifecycle
    # ------------------------------------------------------------------

    def test_connection(self, ctx: Optional[ToolCallContext] = None) -> bool:
        """Test the connection with up to three attempts.

        Returns:
            True if ``SELECT 1`` succeeded, False otherwise
        """
        ctx = resolve_request_context(ctx)
        log = ctx.get_logger("engine")
        policy = RetryPolicy(max_attempts=TEST_CONNECTION_ATTEMPTS, base_delay=self.config.retry_delay)

        def ping(number: int) -> bool:
            with self._get_connection() as conn:
                conn.exec_driver_sql("SELECT 1", execution_options={"no_parameters": True})
            return True

        def on_retry(number: int, delay: float, exc: Exception) -> None:
            log.warning(
                f"Connection test attempt {number}/{policy.max_attempts} failed, retrying in {delay}s",
                extra={"error": translate_error(exc, self.config).message},
            )

        try:
            return retry_call(
                ping,
                policy=policy,
                retry_condition=lambda exc: True,
                on_retry=on_retry,
                sleep=self._sleep,
            )
        except Exception as exc:
            log.error(
                "Database connection test failed",
                extra={"db.url": self.config.masked_url(), "error": translate_error(exc, self.config).message},
            )
            return False

    def warmup_pool(self, count: Optional[int] = None) -> int:
        """Open up to ``count`` pooled connections ahead of the first request.

        Args:
            count: Connections to open; defaults to five, capped by the pool size

        Returns:
            Number of connections that were opened and checked
        """
        target = min(count or WARMUP_CONNECTIONS, self.config.connection_limit)
        warmed = 0
        with ExitStack() as stack:
            for _ in range(target):
                try:
                    conn = stack.enter_context(self._get_connection())
                    conn.exec_driver_sql("SELECT 1", execution_options={"no_parameters": True})
                except Exception as exc:
                    logger.warning(
                        "Pool warmup stopped early",
                        extra={"warmed": str(warmed), "error": translate_error(exc, self.config).message},
                    )
                    break
                warmed += 1

        logger.info("Connection pool warmed up", extra={"warmed": str(warmed)})
        return warmed

    def pool_status(self) -> Dict[str, Any]:
        """Current pool occupancy."""
        status: Dict[str, Any] = {"connections": self.config.connection_limit}
        pool = self.engine.pool
        if isinstance(pool, QueuePool):
            status.update({
                "size": pool.size(),
                "checked_out": pool.checkedout(),
                "checked_in": pool.checkedin(),
                "overflow": pool.overflow(),
            })
        return status

    def dispose(self) -> None:
        """Close every pooled connection."""
        with self._engine_lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            engine.dispose()
            logger.info("Database pool closed")

    def __enter__(self) -> "SQLEngine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()
