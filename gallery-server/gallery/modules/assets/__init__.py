"""Gallery asset domain exports.

Services live in :mod:`.service`, :mod:`.pipeline` and :mod:`.batch`.
"""

from .models import (
    ASSET_STATUSES,
    CATEGORIES,
    AssetAttributes,
    AssetPage,
    AssetRecord,
    BatchItemResult,
    BatchSummary,
    CancellationToken,
    DeleteResult,
    IncomingFile,
    StepOutcome,
    UploadedAsset,
    UploadOptions,
    UploadResult,
)

__all__ = [
    "ASSET_STATUSES",
    "CATEGORIES",
    "AssetAttributes",
    "AssetPage",
    "AssetRecord",
    "BatchItemResult",
    "BatchSummary",
    "CancellationToken",
    "DeleteResult",
    "IncomingFile",
    "StepOutcome",
    "UploadedAsset",
    "UploadOptions",
    "UploadResult",
]
