"""Object store / catalog reconciliation."""

from .models import (
    BackupItem,
    BackupManifest,
    CleanupError,
    CleanupReport,
    ConsistencyIssue,
    ConsistencyReport,
    HealthReport,
    RestoreReport,
)

__all__ = [
    "BackupItem",
    "BackupManifest",
    "CleanupError",
    "CleanupReport",
    "ConsistencyIssue",
    "ConsistencyReport",
    "HealthReport",
    "RestoreReport",
]
