from sqlgate.types.base import SQLGateModel

__all__ = ["SQLGateModel"]
