"""
Tests for the fixed-interval retry primitive.
"""

import asyncio
import time

import pytest

from compiler_fleet.discovery.retry import Retrier, RetryState, retry


class FlakyAttempts:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures: int, value="ok"):
        self.failures = failures
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError(f"attempt {self.calls} failed")
        return self.value


class TestRetry:

    async def test_first_success_does_not_retry(self, sleep) -> None:
        attempts = FlakyAttempts(failures=0, value=[1, 2])

        result = await retry(attempts, "host:1", max_attempts=5, interval_ms=500, sleep=sleep)

        assert result == [1, 2]
        assert attempts.calls == 1
        assert sleep.delays == []

    async def test_retries_at_fixed_interval(self, sleep) -> None:
        attempts = FlakyAttempts(failures=4)

        result = await retry(attempts, "host:1", max_attempts=20, interval_ms=500, sleep=sleep)

        assert result == "ok"
        assert attempts.calls == 5
        assert sleep.delays == [0.5, 0.5, 0.5, 0.5]

    async def test_two_failures_then_success_waits_twice(self, sleep) -> None:
        attempts = FlakyAttempts(failures=2, value="third")

        result = await retry(attempts, "host:1", max_attempts=3, interval_ms=10, sleep=sleep)

        assert result == "third"
        assert sleep.delays == [0.01, 0.01]

    async def test_two_failures_then_success_real_timer(self) -> None:
        attempts = FlakyAttempts(failures=2, value="third")

        loop = asyncio.get_running_loop()
        started = loop.time()
        result = await retry(attempts, "host:1", max_attempts=3, interval_ms=10)
        elapsed = loop.time() - started

        assert result == "third"
        # The loop fires a timer once its deadline is within one tick of the
        # monotonic clock, so each of the two waits may end one tick early.
        tick = time.get_clock_info("monotonic").resolution
        assert elapsed >= 0.020 - 2 * tick

    async def test_exhaustion_raises_last_error(self, sleep, caplog) -> None:
        attempts = FlakyAttempts(failures=10)

        with pytest.raises(ConnectionError, match="attempt 3 failed"):
            await retry(attempts, "host:1", max_attempts=3, interval_ms=10, sleep=sleep)

        assert attempts.calls == 3
        assert sleep.delays == [0.01, 0.01]
        assert "Failed host:1: attempt 1 failed, retrying" in caplog.text
        assert "Too many retries for host:1: attempt 3 failed" in caplog.text

    async def test_single_attempt_never_sleeps(self, sleep) -> None:
        with pytest.raises(ConnectionError):
            await retry(FlakyAttempts(failures=1), "host:1", max_attempts=1, interval_ms=10, sleep=sleep)

        assert sleep.delays == []

    @pytest.mark.parametrize("max_attempts,interval_ms", [(0, 10), (-1, 10), (3, -1)])
    async def test_invalid_policy(self, max_attempts, interval_ms) -> None:
        with pytest.raises(ValueError):
            await retry(FlakyAttempts(0), "host:1", max_attempts=max_attempts, interval_ms=interval_ms)


class TestRetrierState:

    async def test_succeeded_state(self, sleep) -> None:
        retrier = Retrier(FlakyAttempts(failures=1), "host:1", 3, 10, sleep)
        assert retrier.state is RetryState.ATTEMPTING

        await retrier.run()

        assert retrier.state is RetryState.SUCCEEDED
        assert retrier.failures == 1

    async def test_failed_state_keeps_last_error(self, sleep) -> None:
        retrier = Retrier(FlakyAttempts(failures=5), "host:1", 2, 10, sleep)

        with pytest.raises(ConnectionError):
            await retrier.run()

        assert retrier.state is RetryState.FAILED
        assert str(retrier.last_error) == "attempt 2 failed"
