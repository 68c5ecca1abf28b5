"""Raw SQL operations.

These are the only operations whose SQL text comes from the caller. They
are gated by pattern checks in the compiler instead of parameter binding.
"""

from typing import Any, List, Literal, Optional

from pydantic import Field

from sqlgate.operations.base import BaseOperation


class Execute(BaseOperation):
    """Run a caller-supplied query with ``?`` placeholders.

    Attributes:
        query: SQL text
        params: Values bound to the placeholders, in order
        allow_write: Permit data-modifying verbs in the query
    """
    type: Literal["execute"] = Field(default="execute", frozen=True)

    query: str
    params: Optional[List[Any]] = Field(default=None)
    allow_write: bool = Field(default=False)


class DDL(BaseOperation):
    type: Literal["ddl"] = Field(default="ddl", frozen=True)

    statement: str
