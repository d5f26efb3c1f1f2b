"""Role and capability model for gallery access control."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Capability = Literal["view", "upload", "edit", "delete", "manage"]
CAPABILITIES: tuple[Capability, ...] = ("view", "upload", "edit", "delete", "manage")

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "admin": frozenset({"view", "upload", "edit", "delete", "manage"}),
    "editor": frozenset({"view", "upload", "edit", "delete"}),
    "contributor": frozenset({"view", "upload", "edit", "delete"}),
    "viewer": frozenset({"view"}),
    "guest": frozenset(),
}

# Actions limited to the item owner (or a manager); archived items block them too.
OWNER_ACTIONS = frozenset({"edit", "delete"})


@dataclass(slots=True, frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    item: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def allow(cls, item: Any = None) -> "AccessDecision":
        return cls(allowed=True, item=item)

    @classmethod
    def deny(cls, code: str, reason: str, item: Any = None) -> "AccessDecision":
        return cls(allowed=False, reason=reason, code=code, item=item)


@dataclass(slots=True)
class InvalidItem:
    id: str
    reason: str
    code: Optional[str] = None


@dataclass(slots=True)
class BatchAccessResult:
    allowed: bool
    valid_items: list[str] = field(default_factory=list)
    invalid_items: list[InvalidItem] = field(default_factory=list)
