"""Per-user storage quotas."""

from .models import QuotaCheck, QuotaUsage, UsageOperation
from .service import QuotaManager, QuotaProfileProvider

__all__ = ["QuotaCheck", "QuotaManager", "QuotaProfileProvider", "QuotaUsage", "UsageOperation"]
