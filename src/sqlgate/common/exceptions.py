from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Standard error codes for sqlgate operations.

    Each category has its own prefix so callers can identify the error type
    from the code alone without importing the exception classes.

    Attributes:
        CONFIG_*: Configuration-related errors
        VALIDATION_*: Compile-time input validation errors
        RESOURCE_*: Referenced table/column/index does not exist
        CONFLICT_*: Target already exists or unique constraint violated
        RETRY_*: Transient/retryable driver failures
        ACCESS_*: Credential or privilege failures
        SYNTAX_*: Driver-reported SQL syntax errors
        EXECUTION_*: Any other driver failure
    """
    # Configuration errors
    CONFIG_ERROR = "CONFIG_001"
    CONFIG_INVALID = "CONFIG_002"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_001"
    INVALID_IDENTIFIER = "VALIDATION_002"
    MISSING_PARAMETER = "VALIDATION_003"
    INJECTION_DETECTED = "VALIDATION_004"
    WRITE_NOT_ALLOWED = "VALIDATION_005"
    PROTECTED_SCHEMA = "VALIDATION_006"
    INVALID_TYPE = "VALIDATION_007"
    UNKNOWN_TOOL = "VALIDATION_008"

    # Resource errors
    RESOURCE_NOT_FOUND = "RESOURCE_001"
    TABLE_NOT_FOUND = "RESOURCE_002"
    COLUMN_NOT_FOUND = "RESOURCE_003"
    DATABASE_NOT_FOUND = "RESOURCE_004"

    # Conflict errors
    CONFLICT_ERROR = "CONFLICT_001"
    DUPLICATE_KEY_ERROR = "CONFLICT_002"
    ALREADY_EXISTS = "CONFLICT_003"

    # Retry/Transient errors
    RETRYABLE_ERROR = "RETRY_001"
    TIMEOUT_ERROR = "RETRY_002"
    LOCK_ERROR = "RETRY_003"
    CONNECTION_ERROR = "RETRY_004"

    # Access errors
    ACCESS_DENIED = "ACCESS_001"

    # Syntax errors
    SQL_SYNTAX_ERROR = "SYNTAX_001"

    # Execution errors
    EXECUTION_ERROR = "EXECUTION_001"
    QUERY_EXECUTION_ERROR = "EXECUTION_002"


class SQLGateError(Exception):
    """Base exception for all sqlgate errors.

    Subclasses only fix the category; the concrete reason travels in
    ``error_code`` so that a handful of classes cover the whole taxonomy.

    Attributes:
        message: Caller-facing error message
        error_code: Error code from ErrorCode enum
        details: Additional structured details
        hint: Short remediation hint safe to show to the caller
        cause: Optional underlying exception
        is_retryable: Whether the error is transient and can be retried
    """

    default_code: ErrorCode = ErrorCode.EXECUTION_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
        cause: Optional[BaseException] = None,
        is_retryable: Optional[bool] = None,
    ):
        """Initialize sqlgate error.

        Args:
            message: Error message
            error_code: Error code from ErrorCode enum, defaults to the class code
            details: Additional error details
            hint: Remediation hint for the caller
            cause: Optional underlying exception
            is_retryable: Whether error is transient, defaults to the class flag
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.hint = hint
        self.cause = cause
        self.is_retryable = self.retryable if is_retryable is None else is_retryable

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the caller-facing error envelope."""
        payload: Dict[str, Any] = {
            "error": True,
            "type": self.__class__.__name__,
            "code": self.error_code.value,
            "message": self.message,
        }
        if self.hint:
            payload["details"] = self.hint
        return payload


class ConfigurationError(SQLGateError):
    default_code = ErrorCode.CONFIG_ERROR


class ValidationError(SQLGateError):
    """Malformed or disallowed input detected before any SQL is sent."""

    default_code = ErrorCode.VALIDATION_ERROR


class NotFoundError(SQLGateError):
    """Referenced table, column or index does not exist."""

    default_code = ErrorCode.RESOURCE_NOT_FOUND


class ConflictError(SQLGateError):
    """Rename target already exists or a unique constraint was violated."""

    default_code = ErrorCode.CONFLICT_ERROR


class TransientError(SQLGateError):
    """Timeouts, lock waits, deadlocks and lost connections."""

    default_code = ErrorCode.RETRYABLE_ERROR
    retryable = True


class AccessDeniedError(SQLGateError):
    """The database rejected the credentials or privileges."""

    default_code = ErrorCode.ACCESS_DENIED


class SQLSyntaxError(SQLGateError):
    """The database could not parse caller-supplied SQL text."""

    default_code = ErrorCode.SQL_SYNTAX_ERROR


class DatabaseError(SQLGateError):
    """Driver failure that does not fit any other category."""

    default_code = ErrorCode.QUERY_EXECUTION_ERROR


# Helper functions for common error scenarios
def validation_error(
    message: str,
    field: Optional[str] = None,
    value: Any = None,
    error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    **kwargs
) -> ValidationError:
    """Create a validation error.

    Args:
        message: Error message
        field: Field that failed validation
        value: Invalid value (stringified and truncated)
        error_code: Specific validation error code
        **kwargs: Additional ValidationError arguments

    Returns:
        ValidationError with the given code
    """
    details = kwargs.pop("details", {})
    if field:
        details["field"] = field
    if value is not None:
        text = str(value)
        details["value"] = text[:100] + "..." if len(text) > 100 else text

    return ValidationError(
        message=message,
        error_code=error_code,
        details=details,
        **kwargs
    )


def not_found_error(
    message: str,
    resource_type: Optional[str] = None,
    resource_name: Optional[str] = None,
    **kwargs
) -> NotFoundError:
    """Create a resource not found error.

    Args:
        message: Error message
        resource_type: Type of resource (table, column, index)
        resource_name: Name of the missing resource
        **kwargs: Additional NotFoundError arguments

    Returns:
        NotFoundError with a code matching the resource type
    """
    details = kwargs.pop("details", {})
    if resource_type:
        details["resource_type"] = resource_type
    if resource_name:
        details["resource_name"] = resource_name

    code = {
        "table": ErrorCode.TABLE_NOT_FOUND,
        "column": ErrorCode.COLUMN_NOT_FOUND,
        "database": ErrorCode.DATABASE_NOT_FOUND,
    }.get(resource_type or "", ErrorCode.RESOURCE_NOT_FOUND)

    return NotFoundError(message=message, error_code=code, details=details, **kwargs)


def conflict_error(
    message: str,
    resource_type: Optional[str] = None,
    resource_name: Optional[str] = None,
    **kwargs
) -> ConflictError:
    """Create a conflict error for an already existing rename target."""
    details = kwargs.pop("details", {})
    if resource_type:
        details["resource_type"] = resource_type
    if resource_name:
        details["resource_name"] = resource_name

    return ConflictError(
        message=message,
        error_code=ErrorCode.ALREADY_EXISTS,
        details=details,
        **kwargs
    )
