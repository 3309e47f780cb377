"""
Unit tests for Retry.

Usage:
    pytest tests/unit/infrastructure/test_retry.py
"""

import pytest

from frappeur.infrastructure.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
)


class Flaky:
    """Async callable failing a fixed number of times."""

    def __init__(self, failures: int, error: Exception = None):
        self.failures = failures
        self.error = error or ConnectionError("down")
        self.calls = 0

    async def __call__(self, value: str = "ok") -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return value


class TestRetry:
    """Unit tests for Retry."""

    # ================================================================
    # Execution
    # ================================================================

    async def test_success_first_try(self):
        """Test no retry when the call succeeds."""
        func = Flaky(0)
        retry = Retry(RetryConfig(initial_delay=0.0, jitter=False))

        assert await retry.execute_async(func, value="done") == "done"
        assert func.calls == 1

    async def test_success_after_failures(self):
        """Test retries until success within the budget."""
        func = Flaky(2)
        retry = Retry(RetryConfig(max_attempts=3, initial_delay=0.0, jitter=False))

        assert await retry.execute_async(func) == "ok"
        assert func.calls == 3

    async def test_exhausted_raises_retry_error(self):
        """Test RetryError carries attempts and last exception."""
        func = Flaky(10)
        retry = Retry(RetryConfig(max_attempts=3, initial_delay=0.0, jitter=False))

        with pytest.raises(RetryError) as exc_info:
            await retry.execute_async(func)

        assert func.calls == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_exception, ConnectionError)

    async def test_non_retryable_propagates(self):
        """Test exceptions outside retry_on are re-raised immediately."""
        func = Flaky(10, error=KeyError("bad"))
        retry = Retry(
            RetryConfig(
                max_attempts=3,
                initial_delay=0.0,
                retry_on=(ConnectionError,),
            )
        )

        with pytest.raises(KeyError):
            await retry.execute_async(func)

        assert func.calls == 1

    # ================================================================
    # Backoff
    # ================================================================

    def test_exponential_delay(self):
        """Test exponential backoff capped by max_delay."""
        retry = Retry(
            RetryConfig(initial_delay=1.0, max_delay=5.0, jitter=False)
        )

        assert [retry.calculate_delay(a) for a in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_linear_delay(self):
        """Test linear backoff."""
        retry = Retry(
            RetryConfig(
                initial_delay=1.0,
                backoff_strategy=BackoffStrategy.LINEAR,
                jitter=False,
            )
        )

        assert [retry.calculate_delay(a) for a in range(3)] == [1.0, 3.0, 5.0]

    def test_constant_delay(self):
        """Test constant backoff."""
        retry = Retry(
            RetryConfig(
                initial_delay=0.5,
                backoff_strategy=BackoffStrategy.CONSTANT,
                jitter=False,
            )
        )

        assert retry.calculate_delay(0) == retry.calculate_delay(5) == 0.5

    def test_jitter_stays_in_range(self):
        """Test jitter stays within +/- jitter_factor."""
        retry = Retry(RetryConfig(initial_delay=10.0, jitter_factor=0.1))

        for _ in range(20):
            assert 9.0 <= retry.calculate_delay(0) <= 11.0
