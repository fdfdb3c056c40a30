"""
Category routes. Listing joins per-category product counts; deletion is
refused while products still reference the category.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from herbs_backend.db import CATEGORIES, DocumentStore
from herbs_backend.dependencies import get_list_params, get_store, require_admin
from herbs_backend.errors import ConflictError, ResourceNotFound, parse_object_id
from herbs_backend.queries import (
    CATEGORY_LISTING,
    ListParams,
    build_list_query,
    run_list_query,
)
from herbs_backend.schemas import CategoryPayload, Envelope, envelope
from herbs_backend.services import (
    attach_product_counts,
    categories_overview,
    category_detail,
    delete_category,
    find_category_by_name,
    slugify,
)
from herbs_backend.validation import validate_category

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=Envelope, response_model_exclude_none=True)
def list_categories(
    params: ListParams = Depends(get_list_params),
    is_active: Optional[str] = Query(None, alias="isActive"),
    store: DocumentStore = Depends(get_store),
):
    query = build_list_query(CATEGORY_LISTING, params, flags={"isActive": is_active})
    page = run_list_query(store, query)
    return envelope(attach_product_counts(store, page.items), page=page)


@router.get(
    "/stats/overview",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def get_categories_overview(store: DocumentStore = Depends(get_store)):
    return envelope(categories_overview(store))


@router.get("/{category_id}", response_model=Envelope, response_model_exclude_none=True)
def get_category(category_id: str, store: DocumentStore = Depends(get_store)):
    return envelope(category_detail(store, parse_object_id(category_id, "category")))


@router.post(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryPayload, store: DocumentStore = Depends(get_store)
):
    values = validate_category(payload.model_dump(exclude_unset=True)).raise_for_errors()
    if find_category_by_name(store, values["name"]):
        raise ConflictError("Category name already exists")
    values["slug"] = slugify(values["name"])
    values.setdefault("isActive", True)
    category = store.insert(CATEGORIES, values)
    logger.info("Created category %s (%s)", category["_id"], category["name"])
    return envelope(category, message="Category created successfully")


@router.put(
    "/{category_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: str,
    payload: CategoryPayload,
    store: DocumentStore = Depends(get_store),
):
    key = parse_object_id(category_id, "category")
    category = store.get(CATEGORIES, key)
    if category is None:
        raise ResourceNotFound("Category")

    changes = validate_category(
        payload.model_dump(exclude_unset=True), partial=True
    ).raise_for_errors()
    name = changes.get("name")
    if name and name != category["name"]:
        if find_category_by_name(store, name, exclude_id=key):
            raise ConflictError("Category name already exists")
        changes["slug"] = slugify(name)

    updated = store.update(CATEGORIES, key, changes)
    if updated is None:
        raise ResourceNotFound("Category")
    return envelope(updated, message="Category updated successfully")


@router.delete(
    "/{category_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def remove_category(category_id: str, store: DocumentStore = Depends(get_store)):
    delete_category(store, parse_object_id(category_id, "category"))
    return envelope(message="Category deleted successfully")
