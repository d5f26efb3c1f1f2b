"""Domain models for accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

ROLES = ("admin", "editor", "contributor", "viewer", "guest")


@dataclass(slots=True)
class Account:
    id: str
    username: str
    role: str
    is_active: bool
    password_hash: str = field(repr=False)
    email: Optional[str] = None
    quota_bytes: Optional[int] = None
    used_bytes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(slots=True, frozen=True)
class QuotaRecord:
    quota_bytes: int
    used_bytes: int

    @property
    def remaining_bytes(self) -> int:
        return max(self.quota_bytes - self.used_bytes, 0)


@dataclass(slots=True)
class AccountCreateInput:
    username: str
    password: str
    role: str = "contributor"
    email: Optional[str] = None
    is_active: bool = True
    quota_bytes: Optional[int] = None


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class AccountUpdateInput:
    email: Optional[str] | object = UNSET
    is_active: Optional[bool] | object = UNSET
    role: Optional[str] | object = UNSET
    password: Optional[str] | object = UNSET
    quota_bytes: Optional[int] | object = UNSET
