"""Quota domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

UsageOperation = Literal["add", "remove"]


@dataclass(slots=True, frozen=True)
class QuotaCheck:
    allowed: bool
    quota: int
    used: int

    @property
    def remaining(self) -> int:
        return max(self.quota - self.used, 0)


@dataclass(slots=True, frozen=True)
class QuotaUsage:
    user_id: str
    quota_bytes: int
    used_bytes: int

    @property
    def remaining_bytes(self) -> int:
        return max(self.quota_bytes - self.used_bytes, 0)

    @property
    def percent_used(self) -> float:
        if self.quota_bytes <= 0:
            return 100.0
        return round(min(self.used_bytes / self.quota_bytes, 1.0) * 100, 2)
