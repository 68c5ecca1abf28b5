"""Function decorators and the retry helper used by the execution engine."""

import asyncio
import functools
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from sqlgate.logging import get_logger
from sqlgate.telemetry import get_tracer


F = TypeVar('F', bound=Callable[..., Any])
T = TypeVar('T')

logger = get_logger(__name__)


def traced(
    span_name: Optional[str] = None,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    attribute_getter: Optional[Callable[..., Optional[Dict[str, Any]]]] = None,
) -> Callable[[F], F]:
    """Run the decorated function inside an OpenTelemetry span.

    Works for plain functions and coroutines. Attributes whose value is
    ``None`` are not set. A failing ``attribute_getter`` is logged and
    otherwise ignored; exceptions from the function itself are recorded on
    the span and re-raised.

    Args:
        span_name: Span name, defaults to the module-qualified function name
        kind: Span kind
        attributes: Static attributes
        attribute_getter: Called with the function's arguments to build
            per-call attributes
    """

    def decorator(func: F) -> F:
        name = span_name or f"{func.__module__}.{func.__qualname__}"
        tracer = get_tracer(func.__module__)

        @contextmanager
        def span_for(args: tuple, kwargs: dict) -> Iterator[Span]:
            collected: Dict[str, Any] = dict(attributes or {})
            if attribute_getter is not None:
                try:
                    collected.update(attribute_getter(*args, **kwargs) or {})
                except Exception as exc:
                    logger.warning(f"Span attribute getter for {name} failed: {exc}")

            with tracer.start_as_current_span(name, kind=kind) as span:
                for key, value in collected.items():
                    if value is not None:
                        span.set_attribute(key, value)
                try:
                    yield span
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with span_for(args, kwargs):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with span_for(args, kwargs):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


@dataclass(frozen=True)
class RetryPolicy:
    """Linear backoff retry policy.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay: Delay unit in seconds. The wait after failed attempt
            ``n`` (1-based) is ``base_delay * n``.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt


def retry_call(
    func: Callable[[int], T],
    *,
    policy: RetryPolicy,
    retry_condition: Callable[[Exception], bool],
    on_retry: Optional[Callable[[int, float, Exception], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func`` until it succeeds, fails fatally, or attempts run out.

    ``func`` receives the 1-based attempt number. An exception is retried
    only when ``retry_condition`` returns True for it and attempts remain;
    otherwise it propagates unchanged, so exhausting the policy surfaces
    the last error.

    Args:
        func: Callable performing one attempt.
        policy: Attempt count and backoff.
        retry_condition: Decides whether an exception is retryable.
        on_retry: Optional hook called with (attempt, delay, error) before sleeping.
        sleep: Sleep function, replaceable in tests.

    Returns:
        The value returned by the first successful attempt.

    Example:
        >>> retry_call(
        ...     lambda attempt: engine.run(statement),
        ...     policy=RetryPolicy(max_attempts=3, base_delay=0.5),
        ...     retry_condition=lambda exc: getattr(exc, "is_retryable", False),
        ... )
    """
    attempts = max(1, policy.max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return func(attempt)
        except Exception as exc:
            if attempt >= attempts or not retry_condition(exc):
                raise

            delay = policy.delay_for(attempt)
            if on_retry is not None:
                on_retry(attempt, delay, exc)
            sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
