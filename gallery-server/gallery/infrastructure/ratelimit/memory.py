"""In-process rate-limit counters.

State lives in this process only; running several server instances gives
each its own counters. Expired windows are swept when a new window opens,
at most once per window length.
"""

from __future__ import annotations

from typing import Optional

from gallery.modules.ratelimits.models import RateLimitWindow


class InMemoryCounterStore:
    def __init__(self) -> None:
        self._windows: dict[str, RateLimitWindow] = {}
        self._next_sweep_ms = 0

    async def get(self, key: str) -> Optional[RateLimitWindow]:
        return self._windows.get(key)

    async def reset(self, key: str, now_ms: int, window_ms: int) -> RateLimitWindow:
        if now_ms >= self._next_sweep_ms:
            self.purge_expired(now_ms)
            self._next_sweep_ms = now_ms + window_ms
        window = RateLimitWindow(count=0, window_start=now_ms, window_ms=window_ms)
        self._windows[key] = window
        return window

    async def increment(self, key: str) -> RateLimitWindow:
        window = self._windows[key]
        window.count += 1
        return window

    def purge_expired(self, now_ms: int) -> int:
        expired = [key for key, window in self._windows.items() if window.expired(now_ms)]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
