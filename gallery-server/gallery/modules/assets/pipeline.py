"""Upload pipeline: validate, transform, write, describe, thumbnail, audit.

The pipeline owns the object written during an upload until the caller's
catalog write lands. ``upload_and_commit`` removes the object again when the
catalog write fails or the operation is cancelled; when that removal fails
too, the object is left for the reconciler and the failure is reported as a
``compensation`` step.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from datetime import datetime, timezone
from functools import partial
from pathlib import PurePosixPath
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import anyio

from gallery.infrastructure.storage import ObjectStore
from gallery.modules.common import StorageError, StorageErrorKind, UploadError, describe_error

from .imaging import ImageProcessor, StepSkipped
from .models import CancellationToken, IncomingFile, StepOutcome, UploadOptions, UploadResult
from .validation import FileValidator, generate_storage_path, thumbnail_path_for

logger = logging.getLogger(__name__)

T = TypeVar("T")
ProgressCallback = Callable[[int], None]


class _ProgressReporter:
    """Forwards only strictly increasing percentages."""

    def __init__(self, callback: Optional[ProgressCallback]) -> None:
        self._callback = callback
        self._last = 0

    def __call__(self, percent: int) -> None:
        if self._callback is None or percent <= self._last:
            return
        self._last = percent
        self._callback(percent)


def _check_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None and token.cancelled:
        raise StorageError(token.reason or "Upload cancelled", kind=StorageErrorKind.CANCELLED)


class UploadPipeline:
    def __init__(
        self,
        store: ObjectStore,
        validator: FileValidator,
        imaging: ImageProcessor,
        *,
        base_path: str,
        thumbnails_dir: str = "thumbnails",
        watermark_text: str = "",
        watermark_position: str = "bottom-right",
        watermark_opacity: float = 0.3,
        audit: Any = None,
    ) -> None:
        self.store = store
        self.validator = validator
        self.imaging = imaging
        self.base_path = base_path
        self.thumbnails_dir = thumbnails_dir
        self.watermark_text = watermark_text
        self.watermark_position = watermark_position
        self.watermark_opacity = watermark_opacity
        self.audit = audit

    async def upload(
        self,
        file: IncomingFile,
        user_id: str,
        options: Optional[UploadOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UploadResult:
        options = options or UploadOptions()
        report = _ProgressReporter(progress)
        steps: list[StepOutcome] = []

        self.validator.validate(file).raise_for_errors()
        report(10)

        _check_cancelled(cancel_token)
        payload, content_type, file_name = file.data, file.content_type.lower(), file.file_name
        optimized = watermarked = False

        if options.optimize:
            outcome, processed = await self._run_optional(
                "optimize", partial(self.imaging.optimize, payload, content_type)
            )
            steps.append(outcome)
            if processed is not None:
                payload, content_type = processed.data, processed.content_type
                file_name = str(PurePosixPath(file_name).with_suffix(".webp"))
                optimized = True
        else:
            steps.append(StepOutcome("optimize", "skipped", "disabled"))

        if options.watermark and self.watermark_text:
            outcome, processed = await self._run_optional(
                "watermark",
                partial(
                    self.imaging.watermark,
                    payload,
                    content_type,
                    text=self.watermark_text,
                    position=self.watermark_position,
                    opacity=self.watermark_opacity,
                ),
            )
            steps.append(outcome)
            if processed is not None:
                payload = processed.data
                watermarked = True
        else:
            steps.append(StepOutcome("watermark", "skipped", "disabled"))
        report(30)

        _check_cancelled(cancel_token)
        path = generate_storage_path(file_name, user_id, self.base_path)
        try:
            await self.store.put(path, payload, content_type)
        except StorageError as exc:
            raise UploadError(f"Upload failed: {exc.message}", details={"path": path}) from exc
        except OSError as exc:
            raise UploadError(f"Upload failed: {exc}", details={"path": path}) from exc
        report(60)

        written = [path]
        try:
            metadata = await self._describe(payload, content_type, file, user_id)
            metadata.update(optimized=optimized, watermarked=watermarked)

            thumbnail_path = None
            if options.generate_thumbnail:
                _check_cancelled(cancel_token)
                thumbnail_path, outcome = await self._write_thumbnail(path, payload, content_type)
                if thumbnail_path:
                    written.append(thumbnail_path)
                steps.append(outcome)
            else:
                steps.append(StepOutcome("thumbnail", "skipped", "disabled"))
            metadata["thumbnail_generated"] = thumbnail_path is not None
            report(90)

            _check_cancelled(cancel_token)
        except (Exception, asyncio.CancelledError) as exc:
            steps.append(await self.compensate(written, reason=describe_error(exc)))
            raise

        steps.append(await self._audit("upload", path, metadata, user_id))
        report(100)

        return UploadResult(
            path=path,
            url=self.store.get_public_url(path),
            metadata=metadata,
            thumbnail_url=self.store.get_public_url(thumbnail_path) if thumbnail_path else None,
            thumbnail_path=thumbnail_path,
            steps=steps,
        )

    async def upload_and_commit(
        self,
        file: IncomingFile,
        user_id: str,
        commit: Callable[[UploadResult], Awaitable[T]],
        options: Optional[UploadOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> tuple[UploadResult, T]:
        """Upload ``file`` and hand the result to ``commit`` (the catalog write).

        If ``commit`` fails, or the operation is cancelled before it returns,
        the written objects are removed before the error propagates.
        """
        result = await self.upload(
            file, user_id, options, progress=progress, cancel_token=cancel_token
        )
        try:
            _check_cancelled(cancel_token)
            record = await commit(result)
        except asyncio.CancelledError:
            outcome = await self.compensate(result.object_paths(), reason="cancelled")
            result.steps.append(outcome)
            await self._audit_rollback(result, outcome, user_id)
            raise
        except Exception as exc:  # pylint: disable=broad-except
            outcome = await self.compensate(result.object_paths(), reason=describe_error(exc))
            result.steps.append(outcome)
            await self._audit_rollback(result, outcome, user_id)
            details = {
                "path": result.path,
                "compensated": outcome.status == "ok",
                "steps": [step.to_dict() for step in result.steps],
            }
            if isinstance(exc, StorageError):
                raise StorageError(exc.message, kind=exc.kind, details=details) from exc
            raise StorageError(f"Failed to save catalog record: {exc}", details=details) from exc
        return result, record

    async def compensate(self, paths: Sequence[str], *, reason: str) -> StepOutcome:
        """Remove objects written by a failed operation. Never raises."""
        if not paths:
            return StepOutcome("compensation", "skipped", "nothing written")
        try:
            await self.store.remove(list(paths))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(
                "Compensating delete failed for %s (%s); left for reconciliation: %s",
                ", ".join(paths),
                reason,
                describe_error(exc),
            )
            return StepOutcome("compensation", "failed", describe_error(exc))
        logger.info("Removed %s after failed operation: %s", ", ".join(paths), reason)
        return StepOutcome("compensation", "ok", reason)

    async def _run_optional(self, name: str, func):
        try:
            processed = await anyio.to_thread.run_sync(func)
        except StepSkipped as exc:
            return StepOutcome(name, "skipped", str(exc)), None
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("%s step failed, continuing with the unmodified file: %s", name, exc)
            return StepOutcome(name, "failed", str(exc) or type(exc).__name__), None
        return StepOutcome(name, "ok"), processed

    async def _describe(
        self,
        payload: bytes,
        content_type: str,
        file: IncomingFile,
        user_id: str,
    ) -> dict[str, Any]:
        width = height = None
        try:
            size = await anyio.to_thread.run_sync(self.imaging.dimensions, payload, content_type)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not read image dimensions for %s: %s", file.file_name, exc)
            size = None
        if size:
            width, height = size

        return {
            "size": len(payload),
            "original_size": file.size,
            "width": width,
            "height": height,
            "mime_type": content_type,
            "format": content_type.split("/", 1)[-1].split("+", 1)[0],
            "original_name": file.file_name,
            "uploaded_by": user_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "checksum_sha256": hashlib.sha256(payload).hexdigest(),
        }

    async def _write_thumbnail(
        self, path: str, payload: bytes, content_type: str
    ) -> tuple[Optional[str], StepOutcome]:
        outcome, processed = await self._run_optional(
            "thumbnail", partial(self.imaging.thumbnail, payload, content_type)
        )
        if processed is None:
            return None, outcome

        thumbnail_path = thumbnail_path_for(path, self.base_path, self.thumbnails_dir)
        try:
            await self.store.put(thumbnail_path, processed.data, processed.content_type)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Thumbnail upload failed for %s: %s", path, describe_error(exc))
            return None, StepOutcome("thumbnail", "failed", describe_error(exc))
        return thumbnail_path, outcome

    async def _audit(
        self, action: str, path: str, metadata: dict[str, Any], user_id: Optional[str]
    ) -> StepOutcome:
        if self.audit is None:
            return StepOutcome("audit", "skipped", "audit logging disabled")
        if await self.audit.log_operation(action, path, metadata, True, user_id=user_id):
            return StepOutcome("audit", "ok")
        return StepOutcome("audit", "failed", "audit entry could not be written")

    async def _audit_rollback(self, result: UploadResult, outcome: StepOutcome, user_id: str) -> None:
        """Record that an audited upload was undone, and whether its objects are gone."""
        if self.audit is None:
            return
        await self.audit.log_operation(
            "rollback",
            result.path,
            {"reason": outcome.reason, "removed": result.object_paths(), "compensation": outcome.status},
            outcome.status != "failed",
            error=outcome.reason if outcome.status == "failed" else None,
            user_id=user_id,
        )
