"""Permission gate consulted before every gallery mutation."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from gallery.modules.assets.models import ASSET_STATUSES, AssetRecord
from gallery.modules.assets.repository import CatalogStore
from gallery.modules.common import StorageError, describe_error, permission_denied

from .models import (
    CAPABILITIES,
    OWNER_ACTIONS,
    ROLE_CAPABILITIES,
    AccessDecision,
    BatchAccessResult,
    InvalidItem,
)

logger = logging.getLogger(__name__)


class RoleProvider(Protocol):
    async def get_role(self, user_id: str) -> str:
        ...


def capabilities_for(role: str | None) -> frozenset[str]:
    return ROLE_CAPABILITIES.get(role or "guest", ROLE_CAPABILITIES["guest"])


def can_transition(capabilities: Iterable[str], current: str, target: str) -> bool:
    """Statuses only move forward (draft -> published -> archived) unless the actor can manage."""
    if target not in ASSET_STATUSES:
        return False
    if current == target:
        return True
    if "manage" in set(capabilities):
        return True
    if current not in ASSET_STATUSES:
        return False
    return ASSET_STATUSES.index(target) > ASSET_STATUSES.index(current)


class PermissionGate:
    def __init__(self, roles: RoleProvider, catalog: CatalogStore) -> None:
        self._roles = roles
        self._catalog = catalog

    async def role_of(self, user_id: str) -> str:
        role = await self._roles.get_role(user_id)
        return role if role in ROLE_CAPABILITIES else "guest"

    async def capabilities(self, user_id: str) -> frozenset[str]:
        return capabilities_for(await self.role_of(user_id))

    async def has_capability(self, user_id: str, capability: str) -> bool:
        return capability in await self.capabilities(user_id)

    async def require(self, user_id: str, capability: str) -> None:
        role = await self.role_of(user_id)
        if capability not in capabilities_for(role):
            raise permission_denied(
                f"Role '{role}' cannot {capability} gallery items",
                role=role,
                capability=capability,
            )

    async def permission_matrix(self, user_id: str) -> dict[str, object]:
        role = await self.role_of(user_id)
        granted = capabilities_for(role)
        return {"role": role, "capabilities": {name: name in granted for name in CAPABILITIES}}

    async def validate_item_access(self, item_id: str, user_id: str, action: str) -> AccessDecision:
        role = await self.role_of(user_id)
        item = await self._catalog.get(item_id)
        return self._decide(item_id, item, user_id, role, action)

    async def validate_batch_operation(
        self, item_ids: Iterable[str], user_id: str, action: str
    ) -> BatchAccessResult:
        ids = list(dict.fromkeys(item_ids))
        result = BatchAccessResult(allowed=False)
        if not ids:
            return result

        try:
            role = await self.role_of(user_id)
            items = await self._catalog.get_many(ids)
        except StorageError as exc:
            logger.warning("Batch permission lookup failed: %s", describe_error(exc))
            result.invalid_items = [InvalidItem(id=item_id, reason=describe_error(exc), code="error") for item_id in ids]
            return result

        for item_id in ids:
            decision = self._decide(item_id, items.get(item_id), user_id, role, action)
            if decision.allowed:
                result.valid_items.append(item_id)
            else:
                result.invalid_items.append(InvalidItem(id=item_id, reason=decision.reason or "", code=decision.code))
        result.allowed = not result.invalid_items
        return result

    @staticmethod
    def _decide(
        item_id: str,
        item: AssetRecord | None,
        user_id: str,
        role: str,
        action: str,
    ) -> AccessDecision:
        if item is None:
            return AccessDecision.deny("not_found", f"Item {item_id} not found")

        capabilities = capabilities_for(role)
        if action not in capabilities:
            return AccessDecision.deny(
                "missing_capability", f"Role '{role}' lacks the '{action}' capability", item
            )

        is_manager = "manage" in capabilities
        if action in OWNER_ACTIONS and item.created_by != user_id and not is_manager:
            return AccessDecision.deny("not_owner", "Only the owner can modify this item", item)

        if action in OWNER_ACTIONS and item.status == "archived" and not is_manager:
            return AccessDecision.deny("archived", "Archived items can only be changed by a manager", item)

        return AccessDecision.allow(item)
