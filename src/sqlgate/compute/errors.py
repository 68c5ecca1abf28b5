"""Driver error classification and translation.

Raw driver failures are reduced to a symbolic name (``ER_LOCK_DEADLOCK``,
``ECONNREFUSED``, ...) and then mapped onto the sqlgate exception
taxonomy. Translated messages never carry credentials or stack traces;
driver text is only included where it names objects the caller supplied.
"""

import re
import socket
from typing import Any, Iterator, Optional, Tuple

from sqlalchemy import exc as sa_exc

from sqlgate.common.exceptions import (
    AccessDeniedError,
    ConflictError,
    DatabaseError,
    ErrorCode,
    NotFoundError,
    SQLGateError,
    SQLSyntaxError,
    TransientError,
)
from sqlgate.constants.mysql import (
    ECONNREFUSED,
    ECONNRESET,
    EPIPE,
    ETIMEDOUT,
    MYSQL_ERROR_NAMES,
    POOL_TIMEOUT,
    PROTOCOL_CONNECTION_LOST,
    RETRYABLE_ERRORS,
)
from sqlgate.settings.database import DatabaseConfig

_DUPLICATE_ENTRY = re.compile(r"Duplicate entry '([^']*)' for key '([^']*)'")

_CONNECTION_LOST_NAMES = frozenset({
    PROTOCOL_CONNECTION_LOST,
    ECONNRESET,
    EPIPE,
    "CR_SERVER_GONE_ERROR",
    "CR_SERVER_LOST",
})


def _unwrap(exc: BaseException) -> BaseException:
    if isinstance(exc, sa_exc.DBAPIError) and exc.orig is not None:
        return exc.orig
    return exc


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _driver_errno(orig: BaseException) -> Optional[int]:
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int) and not isinstance(args[0], bool):
        return args[0]
    return None


def driver_message(exc: BaseException) -> str:
    """Best-effort driver message without the numeric code prefix."""
    orig = _unwrap(exc)
    args = getattr(orig, "args", ())
    if len(args) >= 2 and isinstance(args[0], int) and isinstance(args[1], str):
        return args[1]
    return str(orig)


def classify_error(exc: BaseException) -> Optional[str]:
    """Return the symbolic name of a driver failure, if recognised.

    Checks, in order: SQLAlchemy pool timeouts, the MySQL error number,
    OS-level socket errors anywhere in the cause chain, invalidated
    connections, and finally message heuristics. A failure that carries a
    driver error number is classified by that number alone.
    """
    if isinstance(exc, sa_exc.TimeoutError):
        return POOL_TIMEOUT

    orig = _unwrap(exc)
    errno = _driver_errno(orig)
    if errno is not None:
        return MYSQL_ERROR_NAMES.get(errno)

    for err in _exception_chain(orig):
        if isinstance(err, ConnectionRefusedError):
            return ECONNREFUSED
        if isinstance(err, ConnectionResetError):
            return ECONNRESET
        if isinstance(err, BrokenPipeError):
            return EPIPE
        if isinstance(err, (TimeoutError, socket.timeout)):
            return ETIMEDOUT

    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return PROTOCOL_CONNECTION_LOST

    message = str(orig).lower()
    if "timeout" in message or "timed out" in message:
        return ETIMEDOUT
    if "connection lost" in message or "lost connection" in message:
        return PROTOCOL_CONNECTION_LOST
    return None


def is_retryable_error(exc: BaseException) -> bool:
    """Whether a failure is transient and the operation may be retried."""
    if isinstance(exc, SQLGateError):
        return exc.is_retryable
    return classify_error(exc) in RETRYABLE_ERRORS


def _target(config: Optional[DatabaseConfig]) -> Tuple[str, str]:
    if config is None:
        return "the MySQL server", "the configured database"
    return f"{config.host}:{config.port}", config.database or "the configured database"


def translate_error(exc: BaseException, config: Optional[DatabaseConfig] = None) -> SQLGateError:
    """Map a driver exception onto the sqlgate error taxonomy.

    Args:
        exc: Exception raised while acquiring a connection or executing
        config: Connection config, used only for host/port/database names

    Returns:
        SQLGateError subclass with an actionable message and hint
    """
    if isinstance(exc, SQLGateError):
        return exc

    name = classify_error(exc)
    address, database = _target(config)
    message = driver_message(exc)
    details: dict = {"driver_error": name} if name else {}

    def build(cls: Any, text: str, code: Optional[ErrorCode] = None, hint: Optional[str] = None) -> SQLGateError:
        return cls(text, error_code=code, details=details, hint=hint, cause=exc)

    if name in ("ER_ACCESS_DENIED_ERROR", "ER_DBACCESS_DENIED_ERROR", "ER_TABLEACCESS_DENIED_ERROR"):
        return build(
            AccessDeniedError,
            f"Database access denied on {address}",
            hint="Check the MySQL credentials and verify the user has the required privileges",
        )
    if name == "ER_BAD_DB_ERROR":
        return build(
            NotFoundError,
            f"Database '{database}' does not exist on {address}",
            ErrorCode.DATABASE_NOT_FOUND,
            hint="Create the database or verify the connection string",
        )
    if name == "ER_NO_SUCH_TABLE":
        return build(
            NotFoundError,
            f"Table does not exist in database '{database}'",
            ErrorCode.TABLE_NOT_FOUND,
            hint="Use the 'list' tool to see available tables",
        )
    if name == "ER_BAD_FIELD_ERROR":
        return build(
            NotFoundError,
            f"Unknown column in query: {message}",
            ErrorCode.COLUMN_NOT_FOUND,
            hint="Use 'describe_table' to see available columns",
        )
    if name == "ER_CANT_DROP_FIELD_OR_KEY":
        return build(
            NotFoundError,
            f"Column or index does not exist: {message}",
            hint="Use 'describe_table' to see available columns",
        )
    if name == "ER_DUP_ENTRY":
        match = _DUPLICATE_ENTRY.search(message)
        text = (
            f"Duplicate entry '{match.group(1)}' for key '{match.group(2)}'"
            if match else "Duplicate entry"
        )
        return build(
            ConflictError,
            f"{text}. A record with this unique value already exists",
            ErrorCode.DUPLICATE_KEY_ERROR,
        )
    if name in ("ER_DUP_FIELDNAME", "ER_DUP_KEYNAME", "ER_TABLE_EXISTS_ERROR"):
        return build(ConflictError, message, ErrorCode.ALREADY_EXISTS)
    if name == "ER_PARSE_ERROR":
        return build(SQLSyntaxError, f"SQL syntax error: {message}", hint="Check your SQL syntax")
    if name == "ER_LOCK_WAIT_TIMEOUT":
        return build(
            TransientError,
            "Lock wait timeout exceeded. The table is locked by another transaction",
            ErrorCode.LOCK_ERROR,
            hint="The operation was retried but still failed; try again later",
        )
    if name == "ER_LOCK_DEADLOCK":
        return build(
            TransientError,
            "Deadlock detected. The transaction was rolled back",
            ErrorCode.LOCK_ERROR,
            hint="You can retry the operation",
        )
    if name in (ECONNREFUSED, "CR_CONNECTION_ERROR", "CR_CONN_HOST_ERROR"):
        return build(
            TransientError,
            f"Connection refused to MySQL server at {address}",
            ErrorCode.CONNECTION_ERROR,
            hint="Ensure MySQL is running and accessible at this address",
        )
    if name == ETIMEDOUT:
        return build(
            TransientError,
            f"Connection timeout to MySQL server at {address}",
            ErrorCode.TIMEOUT_ERROR,
            hint="Check network connectivity and firewall settings",
        )
    if name == POOL_TIMEOUT:
        return build(
            TransientError,
            "Timed out waiting for a free pooled connection",
            ErrorCode.TIMEOUT_ERROR,
            hint="Reduce concurrent requests or raise the connection limit",
        )
    if name in _CONNECTION_LOST_NAMES:
        return build(
            TransientError,
            "MySQL connection was lost",
            ErrorCode.CONNECTION_ERROR,
            hint="This may be due to network issues or a MySQL server restart",
        )
    if name == "CR_UNKNOWN_HOST":
        return build(
            DatabaseError,
            f"MySQL host '{config.host if config else 'unknown'}' not found",
            ErrorCode.CONNECTION_ERROR,
            hint="Check the hostname in your connection string",
        )

    if isinstance(exc, sa_exc.IntegrityError) and re.search(r"unique|duplicate", message, re.IGNORECASE):
        return build(
            ConflictError,
            f"{message}. A record with this unique value already exists",
            ErrorCode.DUPLICATE_KEY_ERROR,
        )

    errno = _driver_errno(_unwrap(exc))
    suffix = f" (Error code: {errno})" if errno is not None else ""
    return build(DatabaseError, f"Database error: {message}{suffix}")
