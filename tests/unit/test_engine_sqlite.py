"""Round-trip tests: compile operations and run them against SQLite."""

import pytest
from sqlalchemy import inspect

from sqlgate.common.exceptions import ConflictError, ErrorCode, NotFoundError, SQLGateError
from sqlgate.compute.engine import SQLEngine
from sqlgate.constants.sql import OperationType
from sqlgate.query_builder.compiler import compile_operation


def _run(engine, payload):
    return engine.run_plan(compile_operation(payload))


def _names(engine):
    result = _run(engine, {"type": "read", "table": "users", "orderBy": "id"})
    return [row["name"] for row in result.rows]


class TestReadRoundTrip:
    """Test SELECT execution."""

    def test_existing_row(self, sqlite_engine):
        """Test that filtering on id=5 returns exactly that row."""
        result = _run(sqlite_engine, {"type": "read", "table": "users", "where": {"id": 5}})
        assert result.rows == [{"id": 5, "name": "Eve", "email": "eve@example.com", "age": 31}]
        assert result.returns_rows
        assert result.attempts == 1

    def test_absent_row(self, sqlite_engine):
        """Test that an absent id returns zero rows, not an error."""
        result = _run(sqlite_engine, {"type": "read", "table": "users", "where": {"id": 999}})
        assert result.rows == []
        assert result.row_count == 0

    def test_projection_and_pagination(self, sqlite_engine):
        """Test columns, IN filters, ordering, limit and offset."""
        _run(sqlite_engine, {
            "type": "bulk_insert",
            "table": "users",
            "data": [{"name": "Ann", "age": 20}, {"name": "Bob", "age": 25}, {"name": "Cid", "age": 40}],
        })
        result = _run(sqlite_engine, {
            "type": "read",
            "table": "users",
            "columns": ["name"],
            "where": {"age": [20, 25, 31]},
            "orderBy": "age DESC",
            "limit": 2,
            "offset": 1,
        })
        assert result.rows == [{"name": "Bob"}, {"name": "Ann"}]

    def test_null_filter(self, sqlite_engine):
        """Test IS NULL filtering."""
        _run(sqlite_engine, {"type": "create", "table": "users", "data": {"name": "Nul", "age": None}})
        result = _run(sqlite_engine, {"type": "read", "table": "users", "columns": ["name"], "where": {"age": None}})
        assert result.rows == [{"name": "Nul"}]

    def test_missing_table(self, sqlite_engine):
        """Test that reading an unknown table fails without retrying."""
        with pytest.raises(SQLGateError) as exc_info:
            _run(sqlite_engine, {"type": "read", "table": "nope"})
        assert not exc_info.value.is_retryable
        sqlite_engine._sleep.assert_not_called()


class TestWriteRoundTrip:
    """Test INSERT, UPDATE and DELETE execution."""

    def test_create_returns_insert_id(self, sqlite_engine):
        """Test that a single insert reports its generated id."""
        result = _run(sqlite_engine, {"type": "create", "table": "users", "data": {"name": "Ann", "age": 20}})
        assert result.affected_rows == 1
        assert result.insert_id == 6

    def test_update(self, sqlite_engine):
        """Test that an update reports affected rows and persists."""
        result = _run(sqlite_engine, {"type": "update", "table": "users", "data": {"age": 32}, "where": {"id": 5}})
        assert result.affected_rows == 1
        row = _run(sqlite_engine, {"type": "read", "table": "users", "columns": ["age"], "where": {"id": 5}})
        assert row.rows == [{"age": 32}]

    def test_delete_nothing(self, sqlite_engine):
        """Test that deleting an absent row affects nothing."""
        result = _run(sqlite_engine, {"type": "delete", "table": "users", "where": {"id": 999}})
        assert result.affected_rows == 0
        assert _names(sqlite_engine) == ["Eve"]

    def test_bulk_insert(self, sqlite_engine):
        """Test that one statement inserts every record."""
        result = _run(sqlite_engine, {
            "type": "bulk_insert",
            "table": "users",
            "data": [{"name": "Ann", "age": 20}, {"name": "Bob", "age": 25}],
        })
        assert result.affected_rows == 2
        assert _names(sqlite_engine) == ["Eve", "Ann", "Bob"]

    def test_unique_violation(self, sqlite_engine):
        """Test that a duplicate unique value is a conflict."""
        with pytest.raises(ConflictError) as exc_info:
            _run(sqlite_engine, {"type": "create", "table": "users", "data": {"name": "X", "email": "eve@example.com"}})
        assert exc_info.value.error_code == ErrorCode.DUPLICATE_KEY_ERROR

    def test_execute_with_params(self, sqlite_engine):
        """Test a raw query with bound parameters."""
        result = _run(sqlite_engine, {
            "type": "execute",
            "query": "SELECT name FROM users WHERE id = ? AND name LIKE 'E%'",
            "params": [5],
        })
        assert result.rows == [{"name": "Eve"}]

    def test_execute_write(self, sqlite_engine):
        """Test a raw write with allowWrite."""
        result = _run(sqlite_engine, {
            "type": "execute",
            "query": "UPDATE users SET age = ? WHERE id = ?",
            "params": [50, 5],
            "allowWrite": True,
        })
        assert result.affected_rows == 1
        assert not result.returns_rows


class TestTransactionRoundTrip:
    """Test all-or-nothing transaction execution."""

    def test_commit(self, sqlite_engine):
        """Test that every step is applied and reported."""
        result = _run(sqlite_engine, {
            "type": "transaction",
            "operations": [
                {"type": "create", "table": "users", "data": {"id": 6, "name": "Ann"}},
                {"type": "update", "table": "users", "data": {"age": 40}, "where": {"id": 5}},
            ],
        })
        assert [step.step for step in result.steps] == [1, 2]
        assert [step.affected_rows for step in result.steps] == [1, 1]
        assert result.steps[0].insert_id == 6
        assert result.affected_rows == 2
        assert _names(sqlite_engine) == ["Eve", "Ann"]

    def test_rollback_on_failing_step(self, sqlite_engine):
        """Test that a failing step undoes earlier steps and is named."""
        with pytest.raises(ConflictError) as exc_info:
            _run(sqlite_engine, {
                "type": "transaction",
                "operations": [
                    {"type": "create", "table": "users", "data": {"id": 6, "name": "Ann"}},
                    {"type": "create", "table": "users", "data": {"id": 5, "name": "Dup"}},
                ],
            })

        assert exc_info.value.message.startswith("Step 2: Insert into table 'users' failed:")
        assert exc_info.value.details["step"] == 2
        assert _names(sqlite_engine) == ["Eve"]


class TestSchemaRoundTrip:
    """Test schema changes and their existence checks."""

    def test_rename_table(self, sqlite_engine):
        """Test that a table is renamed."""
        result = _run(sqlite_engine, {"type": "rename_table", "oldName": "users", "newName": "people"})
        assert result.operation_type == OperationType.RENAME_TABLE
        assert inspect(sqlite_engine.engine).get_table_names() == ["people"]

    def test_rename_table_missing_source(self, sqlite_engine):
        """Test that renaming an absent table is reported before any ALTER."""
        with pytest.raises(NotFoundError) as exc_info:
            _run(sqlite_engine, {"type": "rename_table", "oldName": "ghosts", "newName": "people"})
        assert exc_info.value.error_code == ErrorCode.TABLE_NOT_FOUND

    def test_rename_table_existing_target(self, sqlite_engine):
        """Test that renaming onto an existing table is a conflict."""
        with sqlite_engine.engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE people (id INTEGER PRIMARY KEY)")

        with pytest.raises(ConflictError) as exc_info:
            _run(sqlite_engine, {"type": "rename_table", "oldName": "users", "newName": "people"})
        assert exc_info.value.error_code == ErrorCode.ALREADY_EXISTS

    def test_rename_column(self, sqlite_engine):
        """Test that a column is renamed."""
        _run(sqlite_engine, {"type": "rename_column", "table": "users", "oldName": "age", "newName": "years"})
        columns = [column["name"] for column in inspect(sqlite_engine.engine).get_columns("users")]
        assert "years" in columns
        assert "age" not in columns

    def test_rename_column_onto_existing(self, sqlite_engine):
        """Test that renaming onto an existing column is a conflict."""
        with pytest.raises(ConflictError):
            _run(sqlite_engine, {"type": "rename_column", "table": "users", "oldName": "age", "newName": "name"})

    def test_drop_missing_column(self, sqlite_engine):
        """Test that dropping an absent column is reported by name."""
        with pytest.raises(NotFoundError) as exc_info:
            _run(sqlite_engine, {"type": "drop_column", "table": "users", "column": "ghost"})
        assert exc_info.value.error_code == ErrorCode.COLUMN_NOT_FOUND
        assert "ghost" in exc_info.value.message

    def test_add_index(self, sqlite_engine):
        """Test index creation."""
        result = _run(sqlite_engine, {"type": "add_index", "table": "users", "name": "idx_name", "columns": ["name"]})
        assert [step.description for step in result.steps] == ["Add index 'idx_name' on table 'users'"]
        assert [ix["name"] for ix in inspect(sqlite_engine.engine).get_indexes("users")] == ["idx_name"]


class TestIntrospection:
    """Test list and utility operations."""

    def test_list_tables(self, sqlite_engine):
        """Test that tables are listed by name."""
        result = _run(sqlite_engine, {"type": "list"})
        assert result.info == {"tables": [{"name": "users"}]}

    def test_describe_table(self, sqlite_engine):
        """Test that columns are described with their key."""
        result = _run(sqlite_engine, {"type": "utility", "action": "describe_table", "table": "users"})
        columns = {column["name"]: column for column in result.info["columns"]}
        assert list(columns) == ["id", "name", "email", "age"]
        assert columns["id"]["key"] == "PRI"
        assert columns["name"]["nullable"] is False

    def test_describe_missing_table(self, sqlite_engine):
        """Test that describing an absent table is a not-found error."""
        with pytest.raises(NotFoundError):
            _run(sqlite_engine, {"type": "list", "table": "ghosts"})

    def test_ping(self, sqlite_engine):
        """Test the connectivity check."""
        result = _run(sqlite_engine, {"type": "utility", "action": "ping"})
        assert result.info == {"connected": True}

    def test_version_and_stats(self, sqlite_engine):
        """Test server version and pool statistics."""
        version = _run(sqlite_engine, {"type": "utility", "action": "version"})
        assert version.info["version"].count(".") >= 1

        stats = _run(sqlite_engine, {"type": "utility", "action": "stats"})
        assert stats.info["tables"] == 1
        assert stats.info["rows"] == 1
        assert stats.info["pool"]["connections"] == 5


class TestPoolLifecycle:
    """Test warm-up and disposal."""

    def test_warmup_is_capped_by_pool_size(self, sqlite_engine):
        """Test that warm-up opens at most the pool size."""
        assert sqlite_engine.warmup_pool(count=10) == 5
        assert sqlite_engine.pool_status()["checked_out"] == 0

    def test_dispose_allows_reconnect(self, sqlite_engine):
        """Test that a disposed engine is rebuilt on next use."""
        sqlite_engine.dispose()
        result = _run(sqlite_engine, {"type": "read", "table": "users", "where": {"id": 5}})
        assert result.row_count == 1

    def test_context_manager_disposes(self, sqlite_config):
        """Test that leaving the with-block closes the pool."""
        with SQLEngine(sqlite_config) as engine:
            assert engine.test_connection() is True
            assert engine._engine is not None
        assert engine._engine is None
