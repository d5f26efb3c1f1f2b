"""Storage audit trail."""

from .models import AUDIT_ACTIONS, AuditEntry

__all__ = ["AUDIT_ACTIONS", "AuditEntry"]
