"""core.retry

Reusable async retry utilities with exponential back-off + optional jitter.

Retryability is decided by `core.error_classifier`: only network errors,
timeouts and rate limits are attempted again. When every attempt fails, the
last error is re-raised as-is rather than wrapped.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import secrets
from typing import TYPE_CHECKING, ParamSpec, TypeVar

from pydantic import BaseModel, Field

from notes_ai.core.error_classifier import is_non_retryable_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

P = ParamSpec('P')
T = TypeVar('T')

logger = logging.getLogger(__name__)


class RetryStrategy(BaseModel):
    """Configuration for exponential back-off retry with optional jitter."""

    max_attempts: int = Field(default=3, ge=1, description='Total attempts including the first call')
    base_backoff_sec: float = Field(default=1.0, ge=0.0, description='Initial delay before first retry (seconds)')
    max_backoff_sec: float = Field(default=10.0, ge=0.0, description='Upper bound for any sleep interval')
    jitter: bool = Field(default=False, description='Add random jitter (0-1s) to each interval')

    model_config = {
        'frozen': True,
    }

    def compute_delay(self, attempt_number: int) -> float:
        """Calculate sleep duration after the given attempt number (1-indexed)."""
        delay = min(self.base_backoff_sec * (2 ** (attempt_number - 1)), self.max_backoff_sec)

        if self.jitter:
            delay += secrets.randbelow(101) / 100

        return delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    strategy: RetryStrategy | None = None,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await *operation* until it succeeds or the strategy gives up.

    Parameters
    ----------
    operation
        Zero-argument coroutine factory; called once per attempt, so it must
        be safe to repeat.
    strategy
        Retry policy. Defaults to RetryStrategy() if None.
    sleep
        Awaitable delay function, replaceable in tests.

    """
    retry_strategy = strategy or RetryStrategy()

    for attempt_number in range(1, retry_strategy.max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if is_non_retryable_error(exc):
                logger.debug('Attempt %d failed with a non-retryable error: %s', attempt_number, exc)
                raise
            if attempt_number == retry_strategy.max_attempts:
                logger.debug('All %d attempts failed; last error: %s', attempt_number, exc)
                raise
            delay = retry_strategy.compute_delay(attempt_number)
            logger.debug(
                'Attempt %d/%d failed (%s); retrying in %.2fs',
                attempt_number,
                retry_strategy.max_attempts,
                exc,
                delay,
            )
            await sleep(delay)

    # max_attempts >= 1, so the loop always returns or raises
    raise AssertionError('unreachable')  # pragma: no cover


def with_retry(
    strategy: RetryStrategy | None = None,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator form of `retry_async` for coroutine functions."""

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await retry_async(lambda: func(*args, **kwargs), strategy, sleep=sleep)

        return wrapper

    return decorator
