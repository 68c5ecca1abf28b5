"""Constants module for sqlgate.

This module contains all constant values and enumerations used throughout
sqlgate. It has no dependencies on other sqlgate modules.

Organization:
    - sql: Operation kinds, index types, protected schemas, type allow-list
    - mysql: Driver error numbers and retryable classifications
"""

from sqlgate.constants.sql import (
    OperationType,
    IndexType,
    UtilityAction,
    SCHEMA_OPERATIONS,
    TRANSACTION_STEP_TYPES,
    PROTECTED_SCHEMAS,
    ALLOWED_BASE_TYPES,
    MAX_READ_LIMIT,
)
from sqlgate.constants.mysql import MYSQL_ERROR_NAMES, RETRYABLE_ERRORS

__all__ = [
    "OperationType",
    "IndexType",
    "UtilityAction",
    "SCHEMA_OPERATIONS",
    "TRANSACTION_STEP_TYPES",
    "PROTECTED_SCHEMAS",
    "ALLOWED_BASE_TYPES",
    "MAX_READ_LIMIT",
    "MYSQL_ERROR_NAMES",
    "RETRYABLE_ERRORS",
]
