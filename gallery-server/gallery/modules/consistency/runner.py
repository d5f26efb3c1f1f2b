"""Periodic orphan cleanup, started from the application lifespan."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from gallery.core.container import ApplicationContainer
from gallery.infrastructure.database.repositories.gallery_item_repository import SqlCatalogStore
from gallery.infrastructure.database.session import get_session_factory

from .models import CleanupReport
from .service import ConsistencyChecker

logger = logging.getLogger(__name__)


def build_checker(container: ApplicationContainer, catalog) -> ConsistencyChecker:
    settings = container.settings
    return ConsistencyChecker(
        container.store,
        catalog,
        prefix=settings.storage.base_path,
        page_size=settings.consistency.list_page_size,
        scan_limit=settings.consistency.scan_limit,
        grace_period=timedelta(minutes=settings.consistency.orphan_grace_minutes),
        audit=container.audit,
    )


async def run_cleanup_once(container: ApplicationContainer) -> CleanupReport:
    factory = get_session_factory()
    async with factory() as session:
        checker = build_checker(container, SqlCatalogStore(session))
        return await checker.cleanup_orphaned_files()


class ReconciliationLoop:
    def __init__(self, container: ApplicationContainer, interval_minutes: int) -> None:
        self.container = container
        self.interval = interval_minutes * 60
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info("Orphan cleanup scheduled every %d seconds", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                report = await run_cleanup_once(self.container)
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Scheduled orphan cleanup failed: %s", exc)
                continue
            if report.errors:
                logger.warning(
                    "Scheduled cleanup left %d unresolved paths: %s",
                    len(report.errors),
                    ", ".join(error.path for error in report.errors),
                )
