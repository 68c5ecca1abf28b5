from sqlgate.utils.decorators import RetryPolicy, retry_call, traced

__all__ = [
    "RetryPolicy",
    "retry_call",
    "traced",
]
