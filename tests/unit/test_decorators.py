"""Unit tests for the retry helper and the tracing decorator."""

import asyncio
from unittest.mock import Mock, call

import pytest

from sqlgate.utils.decorators import RetryPolicy, retry_call, traced


class Flaky(Exception):
    pass


class Fatal(Exception):
    pass


class TestRetryCall:
    """Test retry_call attempts and delays."""

    def test_first_attempt_success(self):
        """Test that a successful call is not retried."""
        sleep = Mock()
        assert retry_call(lambda attempt: attempt, policy=RetryPolicy(), retry_condition=lambda exc: True, sleep=sleep) == 1
        sleep.assert_not_called()

    def test_linear_backoff(self):
        """Test that the delay after attempt n is base_delay * n."""
        sleep = Mock()
        on_retry = Mock()
        func = Mock(side_effect=[Flaky(), Flaky(), "ok"])

        result = retry_call(
            func,
            policy=RetryPolicy(max_attempts=3, base_delay=2.0),
            retry_condition=lambda exc: isinstance(exc, Flaky),
            on_retry=on_retry,
            sleep=sleep,
        )

        assert result == "ok"
        assert func.call_args_list == [call(1), call(2), call(3)]
        assert sleep.call_args_list == [call(2.0), call(4.0)]
        assert [c.args[:2] for c in on_retry.call_args_list] == [(1, 2.0), (2, 4.0)]

    def test_exhaustion_raises_last_error(self):
        """Test that the last error propagates once attempts run out."""
        errors = [Flaky("first"), Flaky("second")]
        with pytest.raises(Flaky, match="second"):
            retry_call(
                Mock(side_effect=errors),
                policy=RetryPolicy(max_attempts=2, base_delay=0.1),
                retry_condition=lambda exc: True,
                sleep=Mock(),
            )

    def test_fatal_error_is_not_retried(self):
        """Test that a non-retryable error propagates immediately."""
        func = Mock(side_effect=Fatal())
        sleep = Mock()
        with pytest.raises(Fatal):
            retry_call(
                func,
                policy=RetryPolicy(max_attempts=5),
                retry_condition=lambda exc: isinstance(exc, Flaky),
                sleep=sleep,
            )
        assert func.call_count == 1
        sleep.assert_not_called()

    def test_single_attempt_policy(self):
        """Test that one attempt means no retry even for retryable errors."""
        func = Mock(side_effect=Flaky())
        with pytest.raises(Flaky):
            retry_call(func, policy=RetryPolicy(max_attempts=1), retry_condition=lambda exc: True, sleep=Mock())
        assert func.call_count == 1


class TestTraced:
    """Test the tracing decorator with the no-op tracer."""

    def test_sync_function(self):
        """Test that the wrapped function's result and name are preserved."""
        getter = Mock(return_value={"db.name": "app", "skipped": None})

        @traced(span_name="test.span", attribute_getter=getter)
        def add(a, b):
            return a + b

        assert add(1, b=2) == 3
        assert add.__name__ == "add"
        getter.assert_called_once_with(1, b=2)

    def test_sync_exception_propagates(self):
        """Test that exceptions are re-raised."""

        @traced()
        def boom():
            raise Fatal("boom")

        with pytest.raises(Fatal):
            boom()

    def test_async_function(self):
        """Test that coroutines are wrapped as coroutines."""

        @traced(attributes={"component": "test"})
        async def double(value):
            return value * 2

        assert asyncio.iscoroutinefunction(double)
        assert asyncio.run(double(4)) == 8

    def test_getter_failure_does_not_break_call(self):
        """Test that a failing attribute getter is tolerated."""

        @traced(attribute_getter=Mock(side_effect=RuntimeError("bad getter")))
        def ok():
            return "ok"

        assert ok() == "ok"
