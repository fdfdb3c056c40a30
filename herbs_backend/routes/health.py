"""
Service information endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from herbs_backend.config import Settings
from herbs_backend.db import utcnow
from herbs_backend.dependencies import get_app_settings

router = APIRouter(tags=["health"])

RESOURCES = (
    "products",
    "certificates",
    "team",
    "categories",
    "contact",
    "messages",
    "dashboard",
)


@router.get("/health")
def health(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "OK",
        "message": f"{settings.app_name} is running",
        "timestamp": utcnow().isoformat(),
        "version": settings.version,
    }


def service_info(settings: Settings) -> dict:
    endpoints = {"health": f"{settings.api_prefix}/health"}
    endpoints.update({name: f"{settings.api_prefix}/{name}" for name in RESOURCES})
    return {
        "success": True,
        "message": settings.app_name,
        "version": settings.version,
        "endpoints": endpoints,
    }
