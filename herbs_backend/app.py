"""
FastAPI application entry point for the catalog backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herbs_backend.config import Settings, get_settings
from herbs_backend.db import DocumentStore, DocumentStoreError
from herbs_backend.dependencies import build_asset_store, build_document_store
from herbs_backend.errors import setup_error_handlers
from herbs_backend.middleware import RequestLoggingMiddleware
from herbs_backend.routes import router
from herbs_backend.routes.health import service_info
from herbs_backend.storage import AssetStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", app.state.settings.app_name)
    try:
        app.state.store.ensure_indexes()
    except DocumentStoreError as exc:
        # The API still serves requests; queries fall back to collection scans.
        logger.error("Index setup failed: %s", exc)
    yield
    logger.info("Shutting down %s", app.state.settings.app_name)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    assets: Optional[AssetStore] = None,
) -> FastAPI:
    """
    Build the app. Handles that are not passed in are created from settings
    and live on ``app.state`` for the lifetime of the app.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else build_document_store(settings)
    app.state.assets = assets if assets is not None else build_asset_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    setup_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/")
    def root():
        return service_info(settings)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "herbs_backend.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
