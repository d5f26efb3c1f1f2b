"""功能模块聚合与公共导出。"""

from . import accounts, assets, audit, common, consistency, permissions, quotas, ratelimits

__all__ = [
    "accounts",
    "assets",
    "audit",
    "common",
    "consistency",
    "permissions",
    "quotas",
    "ratelimits",
]
