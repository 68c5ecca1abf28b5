"""Unit tests for operation parsing."""

import pytest

from sqlgate.common.exceptions import ErrorCode, ValidationError
from sqlgate.constants.sql import OperationType
from sqlgate.operations import (
    AddIndex,
    BulkInsert,
    ColumnDefinition,
    ColumnPosition,
    Execute,
    ListObjects,
    Read,
    RenameTable,
    operation_from_tool,
    parse_operation,
)


class TestParseOperation:
    """Test discriminated parsing of tagged payloads."""

    def test_read_with_camel_case_keys(self):
        """Test that camelCase keys populate snake_case fields."""
        op = parse_operation({"type": "read", "table": "users", "orderBy": "id DESC", "limit": 5})
        assert isinstance(op, Read)
        assert op.order_by == "id DESC"
        assert op.operation_type == OperationType.READ
        assert op.target_table == "users"

    def test_snake_case_keys_accepted(self):
        """Test that field names work as well as aliases."""
        op = parse_operation({"type": "execute", "query": "SELECT 1", "allow_write": True})
        assert isinstance(op, Execute)
        assert op.allow_write is True

    def test_bulk_insert_accepts_data_alias(self):
        """Test that bulk insert records may be sent as 'data'."""
        op = parse_operation({"type": "bulk_insert", "table": "t", "data": [{"a": 1}]})
        assert isinstance(op, BulkInsert)
        assert op.records == [{"a": 1}]

    def test_rename_table_target(self):
        """Test that rename_table acts on its old name."""
        op = parse_operation({"type": "rename_table", "oldName": "a", "newName": "b"})
        assert isinstance(op, RenameTable)
        assert op.target_table == "a"

    def test_models_pass_through(self):
        """Test that an operation model is returned unchanged."""
        op = ListObjects()
        assert parse_operation(op) is op

    def test_unknown_type(self):
        """Test that an unknown tag is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            parse_operation({"type": "truncate", "table": "t"})
        assert exc_info.value.message.startswith("Invalid 'truncate' operation")

    def test_missing_field_names_location(self):
        """Test that validation messages name the missing field."""
        with pytest.raises(ValidationError) as exc_info:
            parse_operation({"type": "create", "table": "t"})
        assert "data" in exc_info.value.message

    def test_non_mapping(self):
        """Test that non-object payloads are rejected."""
        with pytest.raises(ValidationError, match="Operation must be an object"):
            parse_operation(["read"])

    def test_telemetry_fields(self):
        """Test the flattened telemetry fields."""
        op = parse_operation({"type": "delete", "table": "t", "where": {"id": 1}})
        assert op.telemetry_fields() == {"operation.type": "delete", "operation.table": "t"}


class TestToolArguments:
    """Test building operations from tool calls."""

    def test_tool_name_becomes_type(self):
        """Test that the tool name sets the operation tag."""
        op = operation_from_tool("read", {"table": "users", "type": "ignored"})
        assert isinstance(op, Read)

    def test_add_index_type_argument(self):
        """Test that add_index's 'type' argument is the index kind."""
        op = operation_from_tool("add_index", {"table": "t", "name": "ix", "columns": ["a"], "type": "fulltext"})
        assert isinstance(op, AddIndex)
        assert op.index_type == "FULLTEXT"

    def test_unknown_tool(self):
        """Test that unknown tool names are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            operation_from_tool("shutdown", {})
        assert exc_info.value.error_code == ErrorCode.UNKNOWN_TOOL


class TestColumnModels:
    """Test column definition and position models."""

    def test_explicit_null_default(self):
        """Test that an explicit null default is distinguished from none."""
        assert ColumnDefinition(name="a", type="int", default=None).has_default
        assert not ColumnDefinition(name="a", type="int").has_default

    def test_camel_case_auto_increment(self):
        """Test the autoIncrement alias."""
        column = ColumnDefinition.model_validate({"name": "id", "type": "int", "autoIncrement": True})
        assert column.auto_increment is True

    @pytest.mark.parametrize("payload", [{}, {"first": True, "after": "a"}])
    def test_position_requires_one_anchor(self, payload):
        """Test that a position needs exactly one of first/after."""
        with pytest.raises(Exception):
            ColumnPosition(**payload)

    @pytest.mark.parametrize("payload", [{"first": True}, {"after": "a"}])
    def test_valid_positions(self, payload):
        """Test the two valid position forms."""
        ColumnPosition(**payload)
