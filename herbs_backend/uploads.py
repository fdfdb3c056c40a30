"""
Upload checks run before a file reaches the asset host.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from fastapi import UploadFile, status

from herbs_backend.config import Settings
from herbs_backend.errors import APIError, FieldError, ValidationFailed
from herbs_backend.storage import (
    IMAGE_CONTENT_TYPES,
    AssetStore,
    AssetStoreError,
    UploadedAsset,
)

logger = logging.getLogger(__name__)


def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def store_upload(
    assets: AssetStore,
    settings: Settings,
    upload: UploadFile,
    *,
    subfolder: str,
    allowed_types: Sequence[str] = IMAGE_CONTENT_TYPES,
    field: str = "image",
) -> UploadedAsset:
    """Validate type and size, then push the file to the asset host."""
    content_type = (upload.content_type or "").lower()
    if content_type not in allowed_types:
        raise ValidationFailed(
            [FieldError(field, f"Unsupported file type: {content_type or 'unknown'}")]
        )
    content = upload.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationFailed(
            [
                FieldError(
                    field,
                    f"File exceeds the {settings.max_upload_bytes} byte upload limit",
                )
            ]
        )
    if not content:
        raise ValidationFailed([FieldError(field, "Uploaded file is empty")])

    try:
        asset = assets.upload(
            content,
            filename=upload.filename or field,
            content_type=content_type,
            folder=f"{settings.asset_folder}/{subfolder}",
        )
    except AssetStoreError as exc:
        logger.error("Asset upload failed for %s: %s", upload.filename, exc)
        raise APIError("File upload failed", status.HTTP_502_BAD_GATEWAY) from exc
    logger.info("Uploaded asset %s", asset.filename)
    return asset
