"""Data Manipulation Language (DML) operations.

This module contains operation classes for reading and writing rows:
SELECT, INSERT, UPDATE, DELETE and multi-row INSERT.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, Field

from sqlgate.operations.base import BaseOperation


class Read(BaseOperation):
    """Select rows from one table.

    Supports:
    - Column projection (None = all columns)
    - Equality / IS NULL / IN filtering via ``where``
    - ORDER BY, LIMIT and OFFSET
    """
    type: Literal["read"] = Field(default="read", frozen=True)

    table: str
    columns: Optional[List[str]] = Field(default=None)
    where: Optional[Dict[str, Any]] = Field(default=None)
    order_by: Optional[str] = Field(default=None)
    limit: Optional[int] = Field(default=None)
    offset: Optional[int] = Field(default=None)


class Create(BaseOperation):
    """Insert a single row."""
    type: Literal["create"] = Field(default="create", frozen=True)

    table: str
    data: Dict[str, Any]


class Update(BaseOperation):
    """Update rows matching ``where``.

    ``where`` is optional at parse time so that a missing filter is
    reported by the compiler with a proper validation error.
    """
    type: Literal["update"] = Field(default="update", frozen=True)

    table: str
    data: Dict[str, Any]
    where: Optional[Dict[str, Any]] = Field(default=None)


class Delete(BaseOperation):
    """Delete rows matching ``where``."""
    type: Literal["delete"] = Field(default="delete", frozen=True)

    table: str
    where: Optional[Dict[str, Any]] = Field(default=None)


class BulkInsert(BaseOperation):
    """Insert many rows with one multi-row INSERT.

    The records may be supplied as ``records`` or ``data``.
    """
    type: Literal["bulk_insert"] = Field(default="bulk_insert", frozen=True)

    table: str
    records: List[Dict[str, Any]] = Field(
        ...,
        validation_alias=AliasChoices("records", "data"),
    )
