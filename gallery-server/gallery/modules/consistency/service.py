"""Drift detection and repair between the object store and the catalog.

There is no transaction spanning both stores, so objects can exist without a
catalog row (orphans) and rows can point at missing objects (dangling
records). The checker finds both; cleanup only ever removes orphans.

Objects younger than the grace period are never reported as orphans: an
upload in flight has written its object but may not have committed its row
yet.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from gallery.infrastructure.storage import ObjectStore, StorageObject
from gallery.modules.assets.repository import CatalogStore
from gallery.modules.common import StorageError, describe_error

from .models import CleanupError, CleanupReport, ConsistencyIssue, ConsistencyReport, HealthReport

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsistencyChecker:
    def __init__(
        self,
        store: ObjectStore,
        catalog: CatalogStore,
        *,
        prefix: str,
        page_size: int = 1000,
        scan_limit: int = 10_000,
        grace_period: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = _utcnow,
        audit=None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.prefix = prefix
        self.page_size = page_size
        self.scan_limit = scan_limit
        self.grace_period = grace_period
        self.clock = clock
        self.audit = audit

    async def list_objects(self) -> tuple[list[StorageObject], bool]:
        """Page through the managed prefix; the flag is set when the scan cap was hit."""
        objects: list[StorageObject] = []
        offset = 0
        while len(objects) < self.scan_limit:
            limit = min(self.page_size, self.scan_limit - len(objects))
            page = await self.store.list(self.prefix, limit=limit, offset=offset, sort_by="name")
            objects.extend(page)
            if len(page) < limit:
                return objects, False
            offset += len(page)
        logger.warning("Object scan stopped at %d entries under %s", self.scan_limit, self.prefix)
        return objects, True

    async def find_orphaned_files(self) -> list[str]:
        objects, _ = await self.list_objects()
        referenced = await self.catalog.list_referenced_paths()
        return self._orphans(objects, referenced)

    async def cleanup_orphaned_files(self) -> CleanupReport:
        report = CleanupReport()
        try:
            orphans = await self.find_orphaned_files()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Orphan scan failed: %s", describe_error(exc))
            report.errors.append(CleanupError(path=self.prefix, error=describe_error(exc)))
            return report

        for path in orphans:
            report.attempted += 1
            try:
                await self.store.remove([path])
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Failed to remove orphan %s: %s", path, describe_error(exc))
                report.errors.append(CleanupError(path=path, error=describe_error(exc)))
                continue
            report.deleted += 1

        logger.info(
            "Orphan cleanup: %d attempted, %d deleted, %d errors",
            report.attempted,
            report.deleted,
            len(report.errors),
        )
        if self.audit is not None and report.attempted:
            await self.audit.log_operation(
                "cleanup",
                self.prefix,
                {"attempted": report.attempted, "deleted": report.deleted},
                not report.errors,
                error="; ".join(f"{err.path}: {err.error}" for err in report.errors) or None,
            )
        return report

    async def check_consistency(self) -> ConsistencyReport:
        report = ConsistencyReport()
        listed: set[str] = set()
        referenced: set[str] = set()

        try:
            objects, report.truncated = await self.list_objects()
            listed = {obj.path for obj in objects}
        except StorageError as exc:
            report.errors.append(f"Failed to list objects: {exc.message}")
            objects = []

        try:
            records = await self.catalog.list_all()
            referenced = await self.catalog.list_referenced_paths()
        except StorageError as exc:
            report.errors.append(f"Failed to read catalog: {exc.message}")
            return report

        for record in records:
            if not record.storage_path or record.storage_path in listed:
                continue
            try:
                present = await self.store.exists(record.storage_path)
            except Exception as exc:  # pylint: disable=broad-except
                report.errors.append(f"Failed to check {record.storage_path}: {describe_error(exc)}")
                continue
            if not present:
                report.issues.append(
                    ConsistencyIssue(
                        type="missing_file",
                        path=record.storage_path,
                        item_id=record.id,
                        message="Catalog record points to a missing object",
                    )
                )

        if not report.errors:
            for path in self._orphans(objects, referenced):
                report.issues.append(
                    ConsistencyIssue(type="orphaned_file", path=path, message="Object has no catalog record")
                )

        try:
            failed = await self.catalog.list_failed_processing()
        except StorageError as exc:
            report.errors.append(f"Failed to read processing status: {exc.message}")
            failed = []
        for record in failed:
            report.issues.append(
                ConsistencyIssue(
                    type="processing_failed",
                    path=record.storage_path,
                    item_id=record.id,
                    message="Image processing failed for this item",
                )
            )
        return report

    async def get_storage_health(self) -> HealthReport:
        issues: list[str] = []
        recommendations: list[str] = []

        report = await self.check_consistency()
        dangling = report.of_type("missing_file")
        orphaned = report.of_type("orphaned_file")
        failed = report.of_type("processing_failed")
        if dangling:
            issues.append(f"{len(dangling)} catalog records point to missing files")
            recommendations.append("Re-upload or delete the affected gallery items")
        if orphaned:
            issues.append(f"{len(orphaned)} orphaned files found")
            recommendations.append("Run cleanup to remove orphaned files")
        if failed:
            issues.append(f"{len(failed)} items failed processing")
            recommendations.append("Replace the files of items that failed processing")
        if report.truncated:
            issues.append("Object scan hit its safety limit; results are partial")
            recommendations.append("Raise the scan limit or run the check per prefix")
        for error in report.errors:
            issues.append(error)

        try:
            stats = await self.catalog.stats(self.clock() - timedelta(hours=24))
        except StorageError as exc:
            issues.append(f"Failed to read storage stats: {exc.message}")
        else:
            if stats.get("recentUploads", 0) == 0:
                recommendations.append("No recent uploads - verify upload functionality")

        if not issues:
            status = "healthy"
        elif report.errors or len(issues) > 2:
            status = "error"
        else:
            status = "warning"
        return HealthReport(status=status, issues=issues, recommendations=recommendations)

    def _orphans(self, objects: list[StorageObject], referenced: set[str]) -> list[str]:
        cutoff = self.clock() - self.grace_period
        return sorted(
            obj.path
            for obj in objects
            if obj.path not in referenced and obj.created_at <= cutoff
        )
