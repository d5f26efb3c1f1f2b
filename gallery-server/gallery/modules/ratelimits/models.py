"""Fixed-window rate limit models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(slots=True)
class RateLimitWindow:
    count: int
    window_start: int
    window_ms: int

    @property
    def reset_time(self) -> int:
        return self.window_start + self.window_ms

    def expired(self, now_ms: int) -> bool:
        return now_ms >= self.reset_time


@dataclass(slots=True, frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: int
    count: int

    def retry_after_seconds(self, now_ms: int) -> int:
        return max((self.reset_time - now_ms + 999) // 1000, 0)


class CounterStore(Protocol):
    """Backing store for rate-limit windows, keyed by ``<user>:<action>``."""

    async def get(self, key: str) -> Optional[RateLimitWindow]:
        ...

    async def reset(self, key: str, now_ms: int, window_ms: int) -> RateLimitWindow:
        ...

    async def increment(self, key: str) -> RateLimitWindow:
        ...
