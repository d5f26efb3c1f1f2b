"""Sequential batch uploads and deletes with per-item failure isolation."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from gallery.modules.common import StorageError, describe_error

from .models import (
    AssetAttributes,
    BatchItemResult,
    BatchSummary,
    DeleteResult,
    IncomingFile,
    StepOutcome,
    UploadOptions,
)
from .service import GalleryService

logger = logging.getLogger(__name__)

BatchProgressCallback = Callable[[int, int, str], None]


class BatchCoordinator:
    """Drives the gallery service over many items, one at a time.

    Items are never processed concurrently, so quota and rate-limit checks
    run against usage that already includes every earlier item of the batch.
    """

    def __init__(self, service: GalleryService) -> None:
        self.service = service

    async def process_batch(
        self,
        items: Sequence[IncomingFile],
        user_id: str,
        attributes: Optional[AssetAttributes] = None,
        options: Optional[UploadOptions] = None,
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchSummary:
        results: list[BatchItemResult] = []
        total = len(items)
        for index, item in enumerate(items):
            try:
                uploaded = await self.service.create_asset(item, user_id, attributes, options)
            except StorageError as exc:
                logger.info("Batch item %s failed: %s", item.file_name, exc.message)
                results.append(
                    BatchItemResult(
                        file_name=item.file_name,
                        success=False,
                        error=exc.message,
                        code=exc.code,
                        steps=_steps_from(exc),
                    )
                )
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Unexpected failure for batch item %s", item.file_name)
                results.append(
                    BatchItemResult(file_name=item.file_name, success=False, error=describe_error(exc), code="STORAGE_ERROR")
                )
            else:
                results.append(
                    BatchItemResult(
                        file_name=item.file_name,
                        success=True,
                        item=uploaded.item,
                        steps=uploaded.steps,
                    )
                )
            if on_progress is not None:
                on_progress(index + 1, total, item.file_name)

        summary = BatchSummary.tally(results)
        logger.info(
            "Batch upload for %s finished: %d/%d succeeded", user_id, summary.successful, summary.total
        )
        return summary

    async def delete_batch(self, item_ids: Sequence[str], user_id: str) -> BatchSummary:
        access = await self.service.permissions.validate_batch_operation(item_ids, user_id, "delete")
        outcomes: dict[str, DeleteResult] = {
            invalid.id: DeleteResult(id=invalid.id, success=False, error=invalid.reason, code=invalid.code)
            for invalid in access.invalid_items
        }

        for item_id in access.valid_items:
            try:
                await self.service.delete_asset(item_id, user_id)
            except StorageError as exc:
                outcomes[item_id] = DeleteResult(id=item_id, success=False, error=exc.message, code=exc.code)
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Unexpected failure deleting %s", item_id)
                outcomes[item_id] = DeleteResult(id=item_id, success=False, error=describe_error(exc))
            else:
                outcomes[item_id] = DeleteResult(id=item_id, success=True)

        ordered = [outcomes[item_id] for item_id in dict.fromkeys(item_ids)]
        return BatchSummary.tally(ordered)


def _steps_from(exc: StorageError) -> list[StepOutcome]:
    details = exc.details if isinstance(exc.details, dict) else {}
    return [StepOutcome(**step) for step in details.get("steps") or []]
