"""
Certificate routes. Certificates accept an image or a PDF scan.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from herbs_backend.config import Settings
from herbs_backend.db import CERTIFICATES, DocumentStore
from herbs_backend.dependencies import (
    get_app_settings,
    get_assets,
    get_list_params,
    get_store,
    require_admin,
    schedule_asset_cleanup,
)
from herbs_backend.errors import (
    FieldError,
    ResourceNotFound,
    ValidationFailed,
    parse_object_id,
)
from herbs_backend.queries import (
    CERTIFICATE_LISTING,
    ListParams,
    build_list_query,
    run_list_query,
)
from herbs_backend.schemas import Envelope, envelope
from herbs_backend.storage import DOCUMENT_CONTENT_TYPES, IMAGE_CONTENT_TYPES, AssetStore
from herbs_backend.uploads import has_file, store_upload
from herbs_backend.validation import CERTIFICATE_CATEGORIES, validate_certificate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/certificates", tags=["certificates"])

CERTIFICATE_UPLOAD_TYPES = IMAGE_CONTENT_TYPES + DOCUMENT_CONTENT_TYPES


def _resource_type(reference: Optional[str]) -> str:
    return "raw" if reference and reference.lower().endswith(".pdf") else "image"


def _cleanup(background_tasks: BackgroundTasks, assets: AssetStore, doc: dict) -> None:
    reference = doc.get("imagePublicId")
    schedule_asset_cleanup(background_tasks, assets, reference, _resource_type(reference))


def _load(store: DocumentStore, certificate_id: str) -> dict:
    certificate = store.get(CERTIFICATES, parse_object_id(certificate_id, "certificate"))
    if certificate is None:
        raise ResourceNotFound("Certificate")
    return certificate


@router.get("", response_model=Envelope, response_model_exclude_none=True)
def list_certificates(
    params: ListParams = Depends(get_list_params),
    category: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    store: DocumentStore = Depends(get_store),
):
    if category is not None and category not in CERTIFICATE_CATEGORIES:
        raise ValidationFailed([FieldError("category", "Invalid category")])
    query = build_list_query(
        CERTIFICATE_LISTING,
        params,
        filters={"category": category},
        flags={"isActive": is_active},
    )
    page = run_list_query(store, query)
    return envelope(page.items, page=page)


@router.get(
    "/{certificate_id}", response_model=Envelope, response_model_exclude_none=True
)
def get_certificate(certificate_id: str, store: DocumentStore = Depends(get_store)):
    return envelope(_load(store, certificate_id))


@router.post(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_certificate(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    issuer: Optional[str] = Form(None),
    certificateNumber: Optional[str] = Form(None),
    issueDate: Optional[str] = Form(None),
    expiryDate: Optional[str] = Form(None),
    documentUrl: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    values = validate_certificate(
        {
            "name": name,
            "description": description,
            "category": category,
            "issuer": issuer,
            "certificateNumber": certificateNumber,
            "issueDate": issueDate,
            "expiryDate": expiryDate,
            "documentUrl": documentUrl,
        }
    ).raise_for_errors()

    if has_file(image):
        asset = store_upload(
            assets,
            settings,
            image,
            subfolder="certificates",
            allowed_types=CERTIFICATE_UPLOAD_TYPES,
        )
        values["image"], values["imagePublicId"] = asset.path, asset.filename
    elif imageUrl and imageUrl.strip():
        values["image"] = imageUrl.strip()
    else:
        raise ValidationFailed(
            [FieldError("image", "Certificate image is required")],
            message="Certificate image is required",
        )

    values.setdefault("category", "other")
    values.setdefault("isActive", True)
    certificate = store.insert(CERTIFICATES, values)
    logger.info("Created certificate %s", certificate["_id"])
    return envelope(certificate, message="Certificate created successfully")


@router.put(
    "/{certificate_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_certificate(
    certificate_id: str,
    background_tasks: BackgroundTasks,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    issuer: Optional[str] = Form(None),
    certificateNumber: Optional[str] = Form(None),
    issueDate: Optional[str] = Form(None),
    expiryDate: Optional[str] = Form(None),
    documentUrl: Optional[str] = Form(None),
    isActive: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    certificate = _load(store, certificate_id)
    changes = validate_certificate(
        {
            "name": name,
            "description": description,
            "category": category,
            "issuer": issuer,
            "certificateNumber": certificateNumber,
            "issueDate": issueDate,
            "expiryDate": expiryDate,
            "documentUrl": documentUrl,
            "isActive": isActive,
        },
        partial=True,
    ).raise_for_errors()

    unset = []
    if has_file(image):
        asset = store_upload(
            assets,
            settings,
            image,
            subfolder="certificates",
            allowed_types=CERTIFICATE_UPLOAD_TYPES,
        )
        changes["image"], changes["imagePublicId"] = asset.path, asset.filename
        _cleanup(background_tasks, assets, certificate)
    elif imageUrl and imageUrl.strip() and imageUrl.strip() != certificate.get("image"):
        changes["image"] = imageUrl.strip()
        unset.append("imagePublicId")
        _cleanup(background_tasks, assets, certificate)

    updated = store.update(CERTIFICATES, certificate["_id"], changes, unset=unset)
    if updated is None:
        raise ResourceNotFound("Certificate")
    return envelope(updated, message="Certificate updated successfully")


@router.delete(
    "/{certificate_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def delete_certificate(
    certificate_id: str,
    background_tasks: BackgroundTasks,
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
):
    certificate = _load(store, certificate_id)
    store.delete(CERTIFICATES, certificate["_id"])
    _cleanup(background_tasks, assets, certificate)
    logger.info("Deleted certificate %s", certificate["_id"])
    return envelope(message="Certificate deleted successfully")
