"""Transaction operation.

A transaction groups data-modifying steps that run on one connection and
commit or roll back together. Steps may be given as operation models or
as raw payloads; the compiler parses and checks each step before any of
them is executed.
"""

from typing import Any, Dict, List, Literal, Union

from pydantic import Field

from sqlgate.operations.base import BaseOperation


class Transaction(BaseOperation):
    type: Literal["transaction"] = Field(default="transaction", frozen=True)

    operations: List[Union[Dict[str, Any], BaseOperation]] = Field(default_factory=list)
