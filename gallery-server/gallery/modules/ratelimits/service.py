"""Fixed-window rate limiter over a pluggable counter store.

Checks are not atomic with respect to concurrent requests for the same key
when the store is shared between processes.
"""

from __future__ import annotations

import time
from typing import Callable

from gallery.modules.common import StorageError, StorageErrorKind

from .models import CounterStore, RateLimitResult


def _now_ms() -> int:
    return int(time.time() * 1000)


def rate_limit_key(user_id: str, action: str) -> str:
    return f"{user_id}:{action}"


class RateLimiter:
    def __init__(self, store: CounterStore, clock: Callable[[], int] = _now_ms) -> None:
        self._store = store
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    async def check(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        now = self._clock()
        window = await self._store.get(key)
        if window is None or window.expired(now):
            window = await self._store.reset(key, now, window_ms)

        if window.count >= limit:
            return RateLimitResult(allowed=False, remaining=0, reset_time=window.reset_time, count=window.count)

        window = await self._store.increment(key)
        return RateLimitResult(
            allowed=True,
            remaining=max(limit - window.count, 0),
            reset_time=window.reset_time,
            count=window.count,
        )

    async def enforce(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        result = await self.check(key, limit, window_ms)
        if not result.allowed:
            raise StorageError(
                "Rate limit exceeded, try again later",
                kind=StorageErrorKind.RATE_LIMITED,
                details={
                    "key": key,
                    "limit": limit,
                    "reset_time": result.reset_time,
                    "retry_after": result.retry_after_seconds(self._clock()),
                },
            )
        return result
