"""Introspection operations: table/column listing and server utilities."""

from typing import Literal, Optional

from pydantic import Field

from sqlgate.constants.sql import UtilityAction
from sqlgate.operations.base import BaseOperation


class ListObjects(BaseOperation):
    """List tables of the configured database, or the columns of ``table``."""
    type: Literal["list"] = Field(default="list", frozen=True)

    table: Optional[str] = Field(default=None)


class Utility(BaseOperation):
    type: Literal["utility"] = Field(default="utility", frozen=True)

    action: UtilityAction
    table: Optional[str] = Field(default=None)
