"""
Dependency wiring for the FastAPI app.

Store and asset handles are created once per app by ``create_app`` and kept
on ``app.state``; routes receive them through the getters below.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Query, Request, status

from herbs_backend.config import Settings
from herbs_backend.db import DocumentStore, InMemoryDocumentStore, MongoDocumentStore
from herbs_backend.queries import ListParams
from herbs_backend.storage import (
    AssetStore,
    InMemoryAssetStore,
    S3AssetStore,
    discard_asset,
)

logger = logging.getLogger(__name__)


def build_document_store(settings: Settings) -> DocumentStore:
    if settings.use_in_memory_backends or not settings.mongodb_uri:
        logger.info("Using in-memory document store")
        return InMemoryDocumentStore()
    return MongoDocumentStore(settings.mongodb_uri, settings.mongodb_database)


def build_asset_store(settings: Settings) -> AssetStore:
    if settings.use_in_memory_backends or not settings.asset_bucket:
        logger.info("Using in-memory asset store")
        return InMemoryAssetStore()
    return S3AssetStore(
        bucket=settings.asset_bucket,
        region=settings.asset_region or "",
        endpoint=settings.asset_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.asset_public_base_url,
    )


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_assets(request: Request) -> AssetStore:
    return request.app.state.assets


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_admin(
    settings: Settings = Depends(get_app_settings),
    authorization: Optional[str] = Header(None),
) -> str:
    """
    Gate admin routes on an ``Authorization: Bearer <token>`` header.

    Use as FastAPI dependency:
        @router.post("/", dependencies=[Depends(require_admin)])
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if token.strip() not in settings.admin_tokens:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return token.strip()


def get_list_params(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> ListParams:
    return ListParams(
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def schedule_asset_cleanup(
    background_tasks: BackgroundTasks,
    assets: AssetStore,
    reference: Optional[str],
    resource_type: str = "image",
) -> None:
    """Queue removal of an orphaned asset to run after the response is sent."""
    if reference:
        background_tasks.add_task(discard_asset, assets, reference, resource_type)
