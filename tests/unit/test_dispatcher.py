"""Unit tests for tool dispatch and result envelopes."""

import datetime
import decimal
import json
import uuid
from unittest.mock import Mock

import pytest

from sqlgate.api.catalog import TOOL_SPECS, resolve_enabled_tools
from sqlgate.api.dispatcher import ToolDispatcher
from sqlgate.api.envelopes import json_safe, to_json
from sqlgate.common.exceptions import ErrorCode, TransientError
from sqlgate.compute.types import ExecutionResult, StepResult


class TestToolSelection:
    """Test which tools a dispatcher exposes."""

    def test_all_tools_by_default(self):
        """Test that no selection enables the whole catalog."""
        assert resolve_enabled_tools(None) == list(TOOL_SPECS)
        assert len(TOOL_SPECS) == 17

    def test_all_keyword(self):
        """Test that 'all' anywhere in the selection enables everything."""
        assert resolve_enabled_tools(["read", "all"]) == list(TOOL_SPECS)

    def test_comma_separated_selection_in_catalog_order(self):
        """Test that a comma-separated string is split and ordered by the catalog."""
        assert resolve_enabled_tools("read, list,bogus") == ["list", "read"]

    def test_list_tools_filters_catalog(self):
        """Test that only enabled tools are advertised."""
        dispatcher = ToolDispatcher(Mock(), enabled_tools=["utility", "read"])
        assert [spec.name for spec in dispatcher.list_tools()] == ["read", "utility"]
        assert dispatcher.is_enabled("read")
        assert not dispatcher.is_enabled("execute")

    def test_add_index_schema_exposes_index_kind(self):
        """Test that add_index advertises the index kind as 'type'."""
        schema = TOOL_SPECS["add_index"].input_schema
        assert schema["properties"]["type"]["enum"] == ["BTREE", "HASH", "FULLTEXT", "SPATIAL"]


class TestDispatchAgainstSQLite:
    """Test end-to-end envelopes over a real database."""

    @pytest.fixture
    def dispatcher(self, sqlite_engine):
        return ToolDispatcher(sqlite_engine)

    def test_read_envelope(self, dispatcher):
        """Test the read envelope."""
        envelope = dispatcher.dispatch("read", {"table": "users", "where": {"id": 5}, "columns": ["id", "name"]})
        assert envelope == {
            "success": True,
            "table": "users",
            "count": 1,
            "data": [{"id": 5, "name": "Eve"}],
        }

    def test_create_envelope(self, dispatcher):
        """Test the create envelope."""
        envelope = dispatcher.dispatch("create", {"table": "users", "data": {"name": "Ann"}})
        assert envelope == {"success": True, "table": "users", "insertedId": 6, "affectedRows": 1}

    def test_bulk_insert_envelope(self, dispatcher):
        """Test the bulk insert envelope."""
        envelope = dispatcher.dispatch(
            "bulk_insert",
            {"table": "users", "data": [{"name": "Ann"}, {"name": "Bob"}]},
        )
        assert envelope["recordCount"] == 2
        assert envelope["affectedRows"] == 2
        assert envelope["message"] == "Successfully inserted 2 records into users"

    def test_transaction_envelope(self, dispatcher):
        """Test the transaction envelope with per-step results."""
        envelope = dispatcher.dispatch("transaction", {
            "operations": [
                {"type": "create", "table": "users", "data": {"id": 6, "name": "Ann"}},
                {"type": "delete", "table": "users", "where": {"id": 5}},
            ],
        })
        assert envelope["success"] is True
        assert envelope["operations"] == 2
        assert envelope["affectedRows"] == 2
        assert envelope["results"][0] == {
            "step": 1,
            "description": "Step 1: Insert into table 'users'",
            "affectedRows": 1,
            "insertedId": 6,
        }

    def test_schema_envelope(self, dispatcher):
        """Test the schema change envelope message."""
        envelope = dispatcher.dispatch("rename_table", {"oldName": "users", "newName": "people"})
        assert envelope["message"] == "Rename table 'users' to 'people' completed successfully"

    def test_list_columns_envelope(self, dispatcher):
        """Test that listing with a table returns its columns."""
        envelope = dispatcher.dispatch("list", {"table": "users"})
        assert envelope["table"] == "users"
        assert [column["name"] for column in envelope["columns"]] == ["id", "name", "email", "age"]

    def test_ping_envelope(self, dispatcher):
        """Test the ping envelope."""
        envelope = dispatcher.dispatch("utility", {"action": "ping"})
        assert envelope["connected"] is True
        assert envelope["action"] == "ping"
        assert "timestamp" in envelope

    def test_validation_error_envelope(self, dispatcher):
        """Test that injection attempts come back as error envelopes."""
        envelope = dispatcher.dispatch("read", {"table": "users; DROP TABLE users"})
        assert envelope["error"] is True
        assert envelope["type"] == "ValidationError"

    def test_database_error_envelope(self, dispatcher):
        """Test that precheck failures come back as not-found envelopes."""
        envelope = dispatcher.dispatch("drop_column", {"table": "users", "column": "ghost"})
        assert envelope["error"] is True
        assert envelope["code"] == ErrorCode.COLUMN_NOT_FOUND.value


class TestDispatchFailures:
    """Test error envelopes for failures outside the database."""

    def test_unknown_tool(self):
        """Test that a tool missing from the catalog is rejected."""
        engine = Mock()
        envelope = ToolDispatcher(engine).dispatch("drop_database", {"name": "app"})
        assert envelope["code"] == ErrorCode.UNKNOWN_TOOL.value
        assert envelope["message"] == "Unknown tool: drop_database"
        engine.run_plan.assert_not_called()

    def test_disabled_tool(self):
        """Test that a catalog tool outside the enabled set is rejected."""
        engine = Mock()
        envelope = ToolDispatcher(engine, enabled_tools=["read"]).dispatch("execute", {"query": "SELECT 1"})
        assert envelope["code"] == ErrorCode.UNKNOWN_TOOL.value
        engine.run_plan.assert_not_called()

    def test_compile_failure_skips_engine(self):
        """Test that invalid input never reaches the engine."""
        engine = Mock()
        envelope = ToolDispatcher(engine).dispatch("execute", {"query": "DELETE FROM users"})
        assert envelope["error"] is True
        assert envelope["code"] == ErrorCode.WRITE_NOT_ALLOWED.value
        engine.run_plan.assert_not_called()

    def test_engine_error_is_returned(self):
        """Test that translated engine errors become their envelope."""
        engine = Mock()
        engine.run_plan.side_effect = TransientError("Deadlock detected", error_code=ErrorCode.LOCK_ERROR)
        envelope = ToolDispatcher(engine).dispatch("read", {"table": "users"})
        assert envelope["type"] == "TransientError"
        assert envelope["code"] == ErrorCode.LOCK_ERROR.value

    def test_unexpected_error_is_hidden(self):
        """Test that unexpected exceptions become a generic envelope."""
        engine = Mock()
        engine.run_plan.side_effect = RuntimeError("secret internals")
        envelope = ToolDispatcher(engine).dispatch("read", {"table": "users"})
        assert envelope == {
            "error": True,
            "type": "DatabaseError",
            "code": ErrorCode.EXECUTION_ERROR.value,
            "message": "An unexpected error occurred",
            "details": "Check the server logs for details",
        }

    def test_add_index_type_argument(self):
        """Test that the add_index 'type' argument selects the index kind."""
        engine = Mock()
        engine.run_plan.return_value = ExecutionResult(
            operation_type="add_index",
            steps=[StepResult(step=1, description="Add index 'idx_name' on table 'users'")],
        )
        envelope = ToolDispatcher(engine).dispatch(
            "add_index",
            {"table": "users", "name": "idx_name", "columns": ["name"], "type": "btree"},
        )

        plan = engine.run_plan.call_args[0][0]
        assert plan.statements[0].sql == "CREATE INDEX `idx_name` ON `users` (`name`) USING BTREE"
        assert envelope["success"] is True
        assert envelope["table"] == "users"


class TestJsonSafe:
    """Test conversion of driver values for JSON output."""

    def test_driver_values(self):
        """Test dates, decimals, bytes and UUIDs."""
        ident = uuid.UUID("12345678-1234-5678-1234-567812345678")
        row = {
            "created": datetime.datetime(2024, 1, 2, 3, 4, 5),
            "day": datetime.date(2024, 1, 2),
            "elapsed": datetime.timedelta(minutes=1),
            "price": decimal.Decimal("9.99"),
            "name": b"Eve",
            "blob": b"\xff\x00",
            "id": ident,
        }
        assert json_safe([row]) == [{
            "created": "2024-01-02T03:04:05",
            "day": "2024-01-02",
            "elapsed": 60.0,
            "price": "9.99",
            "name": "Eve",
            "blob": "/wA=",
            "id": "12345678-1234-5678-1234-567812345678",
        }]

    def test_to_json_round_trips(self):
        """Test that envelopes serialize to indented JSON."""
        text = to_json({"success": True, "data": [{"price": decimal.Decimal("1.50")}]})
        assert json.loads(text) == {"success": True, "data": [{"price": "1.50"}]}
        assert "\n  " in text
