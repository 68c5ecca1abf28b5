"""Schema modification operations.

This module contains operation classes for ALTER TABLE style changes:
adding, dropping, modifying and renaming columns, renaming tables, and
creating or dropping indexes.
"""

from typing import List, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from sqlgate.constants.sql import IndexType
from sqlgate.operations.base import BaseOperation
from sqlgate.types.base import SQLGateModel


class ColumnSpec(SQLGateModel):
    """Column attributes without a name.

    Used as ``newDefinition`` where the column name comes from the
    enclosing operation. ``default`` distinguishes an explicit ``null``
    (``DEFAULT NULL``) from an absent key (no DEFAULT clause) through
    :attr:`has_default`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: str
    nullable: Optional[bool] = Field(default=None)
    default: Optional[Union[bool, int, float, str]] = Field(default=None)
    auto_increment: bool = Field(default=False)
    comment: Optional[str] = Field(default=None)

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class ColumnDefinition(ColumnSpec):
    """A named column definition."""

    name: str


class ColumnPosition(SQLGateModel):
    """Placement of an added column: ``{first: true}`` or ``{after: col}``."""

    first: bool = Field(default=False)
    after: Optional[str] = Field(default=None)

    @model_validator(mode='after')
    def validate_single_anchor(self):
        if self.first == (self.after is not None):
            raise ValueError("position requires exactly one of 'first' or 'after'")
        return self


class AddColumn(BaseOperation):
    type: Literal["add_column"] = Field(default="add_column", frozen=True)

    table: str
    column: ColumnDefinition
    position: Optional[ColumnPosition] = Field(default=None)


class DropColumn(BaseOperation):
    type: Literal["drop_column"] = Field(default="drop_column", frozen=True)

    table: str
    column: str


class ModifyColumn(BaseOperation):
    """Change the definition of an existing column, keeping its name."""
    type: Literal["modify_column"] = Field(default="modify_column", frozen=True)

    table: str
    column: str
    new_definition: ColumnSpec


class RenameColumn(BaseOperation):
    """Rename a column, optionally redefining it in the same statement."""
    type: Literal["rename_column"] = Field(default="rename_column", frozen=True)

    table: str
    old_name: str
    new_name: str
    new_definition: Optional[ColumnSpec] = Field(default=None)


class RenameTable(BaseOperation):
    type: Literal["rename_table"] = Field(default="rename_table", frozen=True)

    old_name: str
    new_name: str

    @property
    def target_table(self) -> Optional[str]:
        return self.old_name


class AddIndex(BaseOperation):
    """Create an index.

    The index kind travels as ``indexType`` because ``type`` is the
    operation tag; tool callers may still send it as ``type``.
    """
    type: Literal["add_index"] = Field(default="add_index", frozen=True)

    table: str
    name: str
    columns: List[str] = Field(..., min_length=1)
    index_type: Optional[IndexType] = Field(default=None)
    unique: bool = Field(default=False)

    @field_validator("index_type", mode="before")
    @classmethod
    def normalize_index_type(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class DropIndex(BaseOperation):
    type: Literal["drop_index"] = Field(default="drop_index", frozen=True)

    table: str
    name: str
