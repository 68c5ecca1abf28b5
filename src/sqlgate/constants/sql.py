"""SQL and operation-related constants.

This module contains the operation kind enumeration and the fixed lists
the compiler checks caller input against. It has no dependencies on other
sqlgate modules so any layer may import it.
"""

from enum import Enum
from typing import FrozenSet, Tuple


class OperationType(str, Enum):
    """Operation kind enumeration.

    The value doubles as the ``type`` discriminator of operation payloads
    and as the tool name in the tool catalog.

    Categories:
    - Data: READ, CREATE, UPDATE, DELETE, BULK_INSERT
    - Raw: EXECUTE, DDL
    - Schema: ADD_COLUMN, DROP_COLUMN, MODIFY_COLUMN, RENAME_COLUMN,
              RENAME_TABLE, ADD_INDEX, DROP_INDEX
    - Composite: TRANSACTION
    - Introspection: LIST, UTILITY
    """

    # Data
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BULK_INSERT = "bulk_insert"

    # Raw SQL
    EXECUTE = "execute"
    DDL = "ddl"

    # Schema modification
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    MODIFY_COLUMN = "modify_column"
    RENAME_COLUMN = "rename_column"
    RENAME_TABLE = "rename_table"
    ADD_INDEX = "add_index"
    DROP_INDEX = "drop_index"

    # Composite
    TRANSACTION = "transaction"

    # Introspection
    LIST = "list"
    UTILITY = "utility"


SCHEMA_OPERATIONS: FrozenSet[OperationType] = frozenset({
    OperationType.ADD_COLUMN,
    OperationType.DROP_COLUMN,
    OperationType.MODIFY_COLUMN,
    OperationType.RENAME_COLUMN,
    OperationType.RENAME_TABLE,
    OperationType.ADD_INDEX,
    OperationType.DROP_INDEX,
})

# Operation kinds a transaction may contain
TRANSACTION_STEP_TYPES: FrozenSet[OperationType] = frozenset({
    OperationType.CREATE,
    OperationType.UPDATE,
    OperationType.DELETE,
    OperationType.BULK_INSERT,
    OperationType.EXECUTE,
})


class IndexType(str, Enum):
    """Index types accepted by ADD INDEX."""

    BTREE = "BTREE"
    HASH = "HASH"
    FULLTEXT = "FULLTEXT"
    SPATIAL = "SPATIAL"


class UtilityAction(str, Enum):
    PING = "ping"
    VERSION = "version"
    STATS = "stats"
    DESCRIBE_TABLE = "describe_table"


# Schema names that no schema-modifying operation may target
PROTECTED_SCHEMAS: FrozenSet[str] = frozenset({
    "mysql",
    "information_schema",
    "performance_schema",
    "sys",
})

# Base column types accepted by ADD/MODIFY COLUMN
ALLOWED_BASE_TYPES: Tuple[str, ...] = (
    "TINYINT", "SMALLINT", "MEDIUMINT", "INT", "INTEGER", "BIGINT",
    "DECIMAL", "NUMERIC", "FLOAT", "DOUBLE", "REAL", "BIT",
    "BOOLEAN", "BOOL",
    "DATE", "DATETIME", "TIMESTAMP", "TIME", "YEAR",
    "CHAR", "VARCHAR", "BINARY", "VARBINARY",
    "TINYBLOB", "BLOB", "MEDIUMBLOB", "LONGBLOB",
    "TINYTEXT", "TEXT", "MEDIUMTEXT", "LONGTEXT",
    "ENUM", "SET",
    "JSON",
)

MAX_READ_LIMIT = 10000
