"""Base model shared by operations, compiled plans and results."""

from pydantic import BaseModel, ConfigDict


class SQLGateModel(BaseModel):
    """Pydantic base for sqlgate data models.

    Enum fields hold their plain values and assignments are validated, so
    results can be filled in step by step by the engine.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        validate_assignment=True
    )
