"""Role-based access control for gallery items."""

from .models import (
    CAPABILITIES,
    ROLE_CAPABILITIES,
    AccessDecision,
    BatchAccessResult,
    Capability,
    InvalidItem,
)
from .service import PermissionGate, RoleProvider, can_transition, capabilities_for

__all__ = [
    "CAPABILITIES",
    "ROLE_CAPABILITIES",
    "AccessDecision",
    "BatchAccessResult",
    "Capability",
    "InvalidItem",
    "PermissionGate",
    "RoleProvider",
    "can_transition",
    "capabilities_for",
]
