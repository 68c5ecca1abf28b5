"""MySQL server and client error numbers.

Drivers report failures as numeric codes; the error translator works with
the symbolic names below so classification reads the same regardless of
which DB-API driver raised the error.
"""

from typing import Dict, FrozenSet

MYSQL_ERROR_NAMES: Dict[int, str] = {
    # Server errors
    1044: "ER_DBACCESS_DENIED_ERROR",
    1045: "ER_ACCESS_DENIED_ERROR",
    1049: "ER_BAD_DB_ERROR",
    1050: "ER_TABLE_EXISTS_ERROR",
    1054: "ER_BAD_FIELD_ERROR",
    1060: "ER_DUP_FIELDNAME",
    1061: "ER_DUP_KEYNAME",
    1062: "ER_DUP_ENTRY",
    1064: "ER_PARSE_ERROR",
    1091: "ER_CANT_DROP_FIELD_OR_KEY",
    1142: "ER_TABLEACCESS_DENIED_ERROR",
    1146: "ER_NO_SUCH_TABLE",
    1205: "ER_LOCK_WAIT_TIMEOUT",
    1213: "ER_LOCK_DEADLOCK",
    # Client errors
    2002: "CR_CONNECTION_ERROR",
    2003: "CR_CONN_HOST_ERROR",
    2005: "CR_UNKNOWN_HOST",
    2006: "CR_SERVER_GONE_ERROR",
    2013: "CR_SERVER_LOST",
}

# Names for OS-level failures that surface without a MySQL error number
ECONNREFUSED = "ECONNREFUSED"
ECONNRESET = "ECONNRESET"
ETIMEDOUT = "ETIMEDOUT"
EPIPE = "EPIPE"
POOL_TIMEOUT = "POOL_TIMEOUT"
PROTOCOL_CONNECTION_LOST = "PROTOCOL_CONNECTION_LOST"

RETRYABLE_ERRORS: FrozenSet[str] = frozenset({
    ECONNREFUSED,
    ECONNRESET,
    ETIMEDOUT,
    EPIPE,
    POOL_TIMEOUT,
    PROTOCOL_CONNECTION_LOST,
    "CR_CONNECTION_ERROR",
    "CR_CONN_HOST_ERROR",
    "CR_SERVER_GONE_ERROR",
    "CR_SERVER_LOST",
    "ER_LOCK_WAIT_TIMEOUT",
    "ER_LOCK_DEADLOCK",
})
