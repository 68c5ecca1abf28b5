"""Common exceptions for sqlgate.

The exception system uses a small class hierarchy for the caller-facing
taxonomy and error codes for the concrete reason. All exceptions inherit
from SQLGateError and serialize to the error envelope via ``to_dict()``.
"""

from sqlgate.common.exceptions import (
    SQLGateError,
    ErrorCode,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    ConflictError,
    TransientError,
    AccessDeniedError,
    SQLSyntaxError,
    DatabaseError,
    # Helper functions
    validation_error,
    not_found_error,
    conflict_error,
)

__all__ = [
    "SQLGateError",
    "ErrorCode",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TransientError",
    "AccessDeniedError",
    "SQLSyntaxError",
    "DatabaseError",
    "validation_error",
    "not_found_error",
    "conflict_error",
]
