"""
Fixed-interval retry for asynchronous attempts.

The wait between attempts is constant: no jitter, no exponential growth,
and no limit other than the attempt count.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

AttemptFactory = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Retrier(Generic[T]):
    """
    Drives one retried operation through ATTEMPTING -> SUCCEEDED | FAILED.
    """

    def __init__(
        self,
        attempt_factory: AttemptFactory[T],
        label: str,
        max_attempts: int,
        interval_ms: float,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")

        self.attempt_factory = attempt_factory
        self.label = label
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.sleep = sleep

        self.state = RetryState.ATTEMPTING
        self.failures = 0
        self.last_error: Optional[BaseException] = None

    async def run(self) -> T:
        while True:
            try:
                result = await self.attempt_factory()
            except Exception as e:
                self.failures += 1
                self.last_error = e

                if self.failures >= self.max_attempts:
                    self.state = RetryState.FAILED
                    logger.error(f"Too many retries for {self.label}: {e}")
                    raise

                logger.warning(f"Failed {self.label}: {e}, retrying")
                await self.sleep(self.interval_ms / 1000.0)
                continue

            self.state = RetryState.SUCCEEDED
            return result


async def retry(
    attempt_factory: AttemptFactory[T],
    label: str,
    max_attempts: int,
    interval_ms: float,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Await fresh attempts from ``attempt_factory`` until one succeeds.

    Args:
        attempt_factory: Returns a new awaitable for every attempt.
        label: Name used in log messages.
        max_attempts: Total attempts before giving up.
        interval_ms: Fixed delay between attempts.
        sleep: Timer used between attempts.

    Returns:
        The value of the first successful attempt.

    Raises:
        The exception of the last attempt once ``max_attempts`` is reached.
    """
    return await Retrier(attempt_factory, label, max_attempts, interval_ms, sleep).run()
