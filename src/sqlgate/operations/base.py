"""Base operation definitions.

Operations are pure data structures describing WHAT a caller asked for.
They are turned into SQL by the operation compiler and run by the
execution engine. Caller-facing keys are camelCase (``orderBy``,
``allowWrite``); snake_case field names are accepted as well.
"""

from typing import Dict, Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from sqlgate.constants.sql import OperationType
from sqlgate.types.base import SQLGateModel


class BaseOperation(SQLGateModel):
    """Base class for all operations.

    Each concrete operation declares a frozen ``type`` literal which acts
    as the discriminator of the :data:`sqlgate.operations.Operation` union
    and as the tool name in the tool catalog.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @property
    def operation_type(self) -> OperationType:
        return OperationType(getattr(self, "type"))

    @property
    def target_table(self) -> Optional[str]:
        """Table the operation acts on, if any."""
        return getattr(self, "table", None)

    def telemetry_fields(self) -> Dict[str, str]:
        """Return flattened telemetry fields describing this operation."""
        payload: Dict[str, str] = {"operation.type": self.operation_type.value}
        if self.target_table:
            payload["operation.table"] = str(self.target_table)
        return payload
