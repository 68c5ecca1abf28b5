"""Caller-facing result envelopes.

Each operation kind has a formatter that turns an ExecutionResult into
the JSON object returned to the caller. Rows are converted to JSON-safe
values here so transports can serialize envelopes with ``json.dumps``.
"""

import base64
import datetime
import decimal
import json
import uuid
from typing import Any, Callable, Dict

from sqlgate.compute.types import ExecutionResult, StepResult
from sqlgate.constants.sql import SCHEMA_OPERATIONS, OperationType, UtilityAction
from sqlgate.operations import BaseOperation

Formatter = Callable[[BaseOperation, ExecutionResult], Dict[str, Any]]


def json_safe(value: Any) -> Any:
    """Convert driver values (dates, decimals, bytes) into JSON-safe values."""
    if isinstance(value, dict):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(raw).decode("ascii")
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def to_json(payload: Dict[str, Any]) -> str:
    return json.dumps(json_safe(payload), indent=2, default=str)


def _step(step: StepResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "step": step.step,
        "description": step.description,
        "affectedRows": step.affected_rows,
    }
    if step.insert_id is not None:
        payload["insertedId"] = step.insert_id
    return payload


def _list(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    if op.target_table:
        return {"success": True, "table": op.target_table, "columns": result.info.get("columns", [])}
    return {"success": True, "tables": result.info.get("tables", [])}


def _read(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    return {"success": True, "table": op.target_table, "count": result.row_count, "data": result.rows}


def _create(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    return {
        "success": True,
        "table": op.target_table,
        "insertedId": result.insert_id,
        "affectedRows": result.affected_rows,
    }


def _modified(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    return {"success": True, "table": op.target_table, "affectedRows": result.affected_rows}


def _bulk_insert(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    count = len(op.records)
    return {
        "success": True,
        "table": op.target_table,
        "recordCount": count,
        "affectedRows": result.affected_rows,
        "insertedId": result.insert_id,
        "message": f"Successfully inserted {count} records into {op.target_table}",
    }


def _execute(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": True, "query": op.query}
    if result.returns_rows:
        payload.update({"results": result.rows, "count": result.row_count})
    else:
        payload.update({"affectedRows": result.affected_rows, "insertedId": result.insert_id})
    return payload


def _ddl(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    return {"success": True, "statement": op.statement, "affectedRows": result.affected_rows}


def _transaction(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    return {
        "success": True,
        "operations": len(op.operations),
        "affectedRows": result.affected_rows,
        "results": [_step(step) for step in result.steps],
    }


def _schema(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    description = result.steps[0].description if result.steps else op.operation_type.value
    return {
        "success": True,
        "table": op.target_table,
        "message": f"{description} completed successfully",
        "results": [_step(step) for step in result.steps],
    }


def _utility(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    action = op.action
    payload: Dict[str, Any] = {"success": True, "action": action}
    if action == UtilityAction.PING.value:
        payload.update({
            "connected": bool(result.info.get("connected")),
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        })
    elif action == UtilityAction.DESCRIBE_TABLE.value:
        payload.update({"table": op.table, "structure": result.info.get("columns", [])})
    else:
        payload.update(result.info)
    return payload


FORMATTERS: Dict[OperationType, Formatter] = {
    OperationType.LIST: _list,
    OperationType.READ: _read,
    OperationType.CREATE: _create,
    OperationType.UPDATE: _modified,
    OperationType.DELETE: _modified,
    OperationType.BULK_INSERT: _bulk_insert,
    OperationType.EXECUTE: _execute,
    OperationType.DDL: _ddl,
    OperationType.TRANSACTION: _transaction,
    OperationType.UTILITY: _utility,
    **{kind: _schema for kind in SCHEMA_OPERATIONS},
}


def format_result(op: BaseOperation, result: ExecutionResult) -> Dict[str, Any]:
    """Shape an execution result into the envelope for ``op``'s kind."""
    return json_safe(FORMATTERS[op.operation_type](op, result))
