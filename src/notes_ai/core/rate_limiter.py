"""core.rate_limiter

Token-bucket admission control for outbound generation requests.

The bucket starts full. Tokens accrue at ``refill_per_minute`` and are capped
at ``capacity``; each admitted request spends one. Check-and-decrement runs
under a lock and contains no suspension point, so concurrent callers (threads
or coroutines) can never both take the last token.
"""

from __future__ import annotations

import math
import threading
import time
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Callable

_MS_PER_MINUTE = 60_000


class RateLimitDecision(NamedTuple):
    allowed: bool
    wait_time_ms: float


class TokenBucketRateLimiter:
    """Process-wide request quota.

    Parameters
    ----------
    capacity
        Maximum number of stored tokens (burst size).
    refill_per_minute
        Tokens added per minute.
    clock
        Monotonic clock returning seconds. Injected for tests.

    """

    def __init__(
        self,
        capacity: int,
        refill_per_minute: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError('capacity must be positive')
        if refill_per_minute <= 0:
            raise ValueError('refill_per_minute must be positive')
        self._capacity = capacity
        self._refill_per_minute = refill_per_minute
        self._clock = clock
        self._tokens = capacity
        self._last_refill_ms = self._now_ms()
        self._lock = threading.Lock()

    @classmethod
    def per_minute(
        cls,
        requests_per_minute: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> TokenBucketRateLimiter:
        """Bucket whose capacity equals its per-minute refill rate."""
        return cls(requests_per_minute, requests_per_minute, clock=clock)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available_tokens(self) -> int:
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """Spend one token if available. Returns False when the bucket is empty."""
        with self._lock:
            self._refill()
            if self._tokens > 0:
                self._tokens -= 1
                return True
            return False

    def wait_time_ms(self) -> float:
        """Milliseconds until the next token accrues (0 if one is available)."""
        with self._lock:
            if self._tokens > 0:
                return 0
            return _MS_PER_MINUTE / self._refill_per_minute

    def check(self) -> RateLimitDecision:
        allowed = self.try_acquire()
        return RateLimitDecision(allowed, 0 if allowed else self.wait_time_ms())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _refill(self) -> None:
        # caller holds self._lock
        now = self._now_ms()
        elapsed = now - self._last_refill_ms
        to_add = math.floor(elapsed * self._refill_per_minute / _MS_PER_MINUTE)
        if to_add > 0:
            self._tokens = min(self._capacity, self._tokens + to_add)
            self._last_refill_ms = now

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} capacity={self._capacity} refill_per_minute={self._refill_per_minute}>'
