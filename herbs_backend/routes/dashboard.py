"""
Admin dashboard overview.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from herbs_backend.db import DocumentStore
from herbs_backend.dependencies import get_store, require_admin
from herbs_backend.schemas import Envelope, envelope
from herbs_backend.services import dashboard_overview

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/overview",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def get_overview(store: DocumentStore = Depends(get_store)):
    """Entity counts plus the newest activity across collections."""
    return envelope(dashboard_overview(store))
