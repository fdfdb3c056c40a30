"""
HTTP routes for the catalog API, one router per resource.
"""

from fastapi import APIRouter

from herbs_backend.routes import (
    categories,
    certificates,
    contacts,
    dashboard,
    health,
    messages,
    products,
    team,
)

router = APIRouter()
router.include_router(health.router)
router.include_router(products.router)
router.include_router(categories.router)
router.include_router(certificates.router)
router.include_router(team.router)
router.include_router(contacts.router)
router.include_router(messages.router)
router.include_router(dashboard.router)
