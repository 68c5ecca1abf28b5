"""Execution result types.

Results returned by the execution engine. They carry raw driver outcomes
(row counts, generated ids, rows); shaping them into caller-facing
envelopes is left to the tool layer.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from sqlgate.constants.sql import OperationType
from sqlgate.types.base import SQLGateModel


class StepResult(SQLGateModel):
    """Outcome of one statement inside a transaction or schema change.

    Attributes:
        step: 1-based position in the plan
        description: Description attached at compile time
        affected_rows: Rows affected as reported by the driver
        insert_id: Generated id, if the statement produced one
    """
    step: int = Field(..., ge=1)
    description: str
    affected_rows: int = Field(default=0)
    insert_id: Optional[int] = Field(default=None)


class ExecutionResult(SQLGateModel):
    """Result of running a compiled plan.

    Attributes:
        operation_type: Kind of operation that was executed
        affected_rows: Total rows affected across all statements
        insert_id: Last generated id, if any
        rows: Row set of the last row-returning statement
        returns_rows: Whether ``rows`` holds a result set
        steps: Per-statement results for multi-step plans
        info: Introspection payload for list/utility operations
        duration_seconds: Wall time including retries
        attempts: Attempts used
    """
    operation_type: OperationType
    affected_rows: int = Field(default=0)
    insert_id: Optional[int] = Field(default=None)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    returns_rows: bool = Field(default=False)
    steps: List[StepResult] = Field(default_factory=list)
    info: Dict[str, Any] = Field(default_factory=dict)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    attempts: int = Field(default=1, ge=1)

    @property
    def row_count(self) -> int:
        return len(self.rows)
