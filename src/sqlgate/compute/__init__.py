"""Compute module: plan execution against a pooled database connection.

Organization:
    - engine: SQLEngine, pool ownership, retry and transactions
    - errors: driver error classification and translation
    - types: ExecutionResult and StepResult
"""

from sqlgate.compute.engine import SQLEngine
from sqlgate.compute.errors import classify_error, is_retryable_error, translate_error
from sqlgate.compute.types import ExecutionResult, StepResult

__all__ = [
    "SQLEngine",
    "classify_error",
    "is_retryable_error",
    "translate_error",
    "ExecutionResult",
    "StepResult",
]
