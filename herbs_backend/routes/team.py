"""
Team member routes.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from herbs_backend.config import Settings
from herbs_backend.db import TEAM_MEMBERS, DocumentStore, DuplicateDocumentError
from herbs_backend.dependencies import (
    get_app_settings,
    get_assets,
    get_list_params,
    get_store,
    require_admin,
    schedule_asset_cleanup,
)
from herbs_backend.errors import (
    ConflictError,
    FieldError,
    ResourceNotFound,
    ValidationFailed,
    parse_object_id,
)
from herbs_backend.queries import TEAM_LISTING, ListParams, build_list_query, run_list_query
from herbs_backend.schemas import Envelope, envelope
from herbs_backend.storage import AssetStore, discard_asset
from herbs_backend.uploads import has_file, store_upload
from herbs_backend.validation import validate_team_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team", tags=["team"])

EMAIL_TAKEN = "Email already exists"


def _load(store: DocumentStore, member_id: str) -> dict:
    member = store.get(TEAM_MEMBERS, parse_object_id(member_id, "team member"))
    if member is None:
        raise ResourceNotFound("Team member")
    return member


@router.get("", response_model=Envelope, response_model_exclude_none=True)
def list_team_members(
    params: ListParams = Depends(get_list_params),
    department: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    store: DocumentStore = Depends(get_store),
):
    department_filter = None
    if department and department.strip():
        department_filter = {"$regex": re.escape(department.strip()), "$options": "i"}
    query = build_list_query(
        TEAM_LISTING,
        params,
        filters={"department": department_filter},
        flags={"isActive": is_active},
    )
    page = run_list_query(store, query)
    return envelope(page.items, page=page)


@router.get("/{member_id}", response_model=Envelope, response_model_exclude_none=True)
def get_team_member(member_id: str, store: DocumentStore = Depends(get_store)):
    return envelope(_load(store, member_id))


@router.post(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_team_member(
    name: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    startDate: Optional[str] = Form(None),
    skills: Optional[str] = Form(None),
    languages: Optional[str] = Form(None),
    socialLinks: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    values = validate_team_member(
        {
            "name": name,
            "position": position,
            "email": email,
            "phone": phone,
            "whatsapp": whatsapp,
            "bio": bio,
            "department": department,
            "startDate": startDate,
            "skills": skills,
            "languages": languages,
            "socialLinks": socialLinks,
        }
    ).raise_for_errors()
    if store.find_one(TEAM_MEMBERS, {"email": values["email"]}):
        raise ConflictError(EMAIL_TAKEN)

    if has_file(image):
        asset = store_upload(assets, settings, image, subfolder="team")
        values["image"], values["imagePublicId"] = asset.path, asset.filename
    elif imageUrl and imageUrl.strip():
        values["image"] = imageUrl.strip()
    else:
        raise ValidationFailed(
            [FieldError("image", "Team member image is required")],
            message="Team member image is required",
        )

    values.setdefault("isActive", True)
    values.setdefault("skills", [])
    values.setdefault("languages", [])
    try:
        member = store.insert(TEAM_MEMBERS, values)
    except DuplicateDocumentError:
        discard_asset(assets, values.get("imagePublicId"))
        raise ConflictError(EMAIL_TAKEN) from None
    logger.info("Created team member %s", member["_id"])
    return envelope(member, message="Team member created successfully")


@router.put(
    "/{member_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_team_member(
    member_id: str,
    background_tasks: BackgroundTasks,
    name: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    startDate: Optional[str] = Form(None),
    skills: Optional[str] = Form(None),
    languages: Optional[str] = Form(None),
    socialLinks: Optional[str] = Form(None),
    isActive: Optional[str] = Form(None),
    imageUrl: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    member = _load(store, member_id)
    changes = validate_team_member(
        {
            "name": name,
            "position": position,
            "email": email,
            "phone": phone,
            "whatsapp": whatsapp,
            "bio": bio,
            "department": department,
            "startDate": startDate,
            "skills": skills,
            "languages": languages,
            "socialLinks": socialLinks,
            "isActive": isActive,
        },
        partial=True,
    ).raise_for_errors()

    new_email = changes.get("email")
    if new_email and new_email != member.get("email"):
        if store.find_one(
            TEAM_MEMBERS, {"email": new_email, "_id": {"$ne": member["_id"]}}
        ):
            raise ConflictError(EMAIL_TAKEN)

    unset = []
    if has_file(image):
        asset = store_upload(assets, settings, image, subfolder="team")
        changes["image"], changes["imagePublicId"] = asset.path, asset.filename
        schedule_asset_cleanup(background_tasks, assets, member.get("imagePublicId"))
    elif imageUrl and imageUrl.strip() and imageUrl.strip() != member.get("image"):
        changes["image"] = imageUrl.strip()
        unset.append("imagePublicId")
        schedule_asset_cleanup(background_tasks, assets, member.get("imagePublicId"))

    try:
        updated = store.update(TEAM_MEMBERS, member["_id"], changes, unset=unset)
    except DuplicateDocumentError:
        discard_asset(assets, changes.get("imagePublicId"))
        raise ConflictError(EMAIL_TAKEN) from None
    if updated is None:
        raise ResourceNotFound("Team member")
    return envelope(updated, message="Team member updated successfully")


@router.delete(
    "/{member_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def delete_team_member(
    member_id: str,
    background_tasks: BackgroundTasks,
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
):
    member = _load(store, member_id)
    store.delete(TEAM_MEMBERS, member["_id"])
    schedule_asset_cleanup(background_tasks, assets, member.get("imagePublicId"))
    logger.info("Deleted team member %s", member["_id"])
    return envelope(message="Team member deleted successfully")
