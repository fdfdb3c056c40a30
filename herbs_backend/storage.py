"""
Asset host abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

import logging
import mimetypes
import posixpath
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
DOCUMENT_CONTENT_TYPES = ("application/pdf",)


class AssetStoreError(Exception):
    """Raised when the asset host rejects an upload or delete."""


@dataclass(frozen=True)
class UploadedAsset:
    """Result of an upload: ``path`` is the public URL, ``filename`` the reference."""

    path: str
    filename: str


class AssetStore(Protocol):
    """Defines the operations the API needs from the asset host."""

    def upload(
        self, content: bytes, *, filename: str, content_type: str, folder: str
    ) -> UploadedAsset:
        ...

    def delete(self, reference: str, resource_type: str = "image") -> None:
        ...

    def url_for(self, reference: str) -> str:
        ...


def build_reference(folder: str, filename: str, content_type: str) -> str:
    extension = posixpath.splitext(filename or "")[1].lower()
    if not extension:
        extension = mimetypes.guess_extension(content_type) or ""
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{extension}"


@dataclass
class InMemoryAssetStore:
    """Test double for asset host interactions."""

    base_url: str = "https://example.test/assets"
    stored_objects: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)

    def upload(
        self, content: bytes, *, filename: str, content_type: str, folder: str
    ) -> UploadedAsset:
        reference = build_reference(folder, filename, content_type)
        self.stored_objects[reference] = content
        return UploadedAsset(path=self.url_for(reference), filename=reference)

    def delete(self, reference: str, resource_type: str = "image") -> None:
        if reference not in self.stored_objects:
            raise AssetStoreError(f"Asset not found: {reference}")
        del self.stored_objects[reference]
        self.deleted.append(reference)

    def url_for(self, reference: str) -> str:
        return f"{self.base_url}/{reference}"


@dataclass
class S3AssetStore:
    """
    S3-compatible asset host. Objects are uploaded public-read so the
    catalog frontend can load them straight from ``public_base_url``.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload(
        self, content: bytes, *, filename: str, content_type: str, folder: str
    ) -> UploadedAsset:
        reference = build_reference(folder, filename, content_type)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=reference,
                Body=content,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            raise AssetStoreError(f"Upload failed for {filename}: {exc}") from exc
        return UploadedAsset(path=self.url_for(reference), filename=reference)

    def delete(self, reference: str, resource_type: str = "image") -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=reference)
        except (BotoCoreError, ClientError) as exc:
            raise AssetStoreError(f"Delete failed for {reference}: {exc}") from exc

    def url_for(self, reference: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{reference}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{reference}"


def discard_asset(
    assets: AssetStore, reference: Optional[str], resource_type: str = "image"
) -> bool:
    """
    Best-effort removal of an asset that no longer backs any document.

    Runs after the primary write has been committed; failures are logged and
    reported through the return value only.
    """
    if not reference:
        return False
    try:
        assets.delete(reference, resource_type=resource_type)
    except Exception:
        logger.warning(
            "Failed to delete %s asset %s", resource_type, reference, exc_info=True
        )
        return False
    logger.info("Deleted %s asset %s", resource_type, reference)
    return True
