"""
Product catalog routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from bson import ObjectId
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
    status,
)

from herbs_backend.config import Settings
from herbs_backend.db import CATEGORIES, PRODUCTS, DocumentStore, is_object_id
from herbs_backend.dependencies import (
    get_app_settings,
    get_assets,
    get_list_params,
    get_store,
    require_admin,
    schedule_asset_cleanup,
)
from herbs_backend.errors import APIError, ResourceNotFound, parse_object_id
from herbs_backend.queries import (
    PRODUCT_LISTING,
    ListParams,
    build_list_query,
    run_list_query,
)
from herbs_backend.schemas import Envelope, envelope
from herbs_backend.services import populate_categories
from herbs_backend.storage import AssetStore
from herbs_backend.uploads import has_file, store_upload
from herbs_backend.validation import validate_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _ensure_category(store: DocumentStore, category_id: str) -> ObjectId:
    key = ObjectId(category_id)
    if store.get(CATEGORIES, key) is None:
        raise APIError("Category not found", status.HTTP_400_BAD_REQUEST)
    return key


def _load(store: DocumentStore, product_id: str) -> dict:
    product = store.get(PRODUCTS, parse_object_id(product_id, "product"))
    if product is None:
        raise ResourceNotFound("Product")
    return product


def _populated(store: DocumentStore, product: dict) -> dict:
    return populate_categories(store, [product])[0]


@router.get("", response_model=Envelope, response_model_exclude_none=True)
def list_products(
    params: ListParams = Depends(get_list_params),
    category: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    store: DocumentStore = Depends(get_store),
):
    # Malformed category ids are ignored rather than rejected.
    category_filter = ObjectId(category) if category and is_object_id(category) else None
    query = build_list_query(
        PRODUCT_LISTING,
        params,
        filters={"category": category_filter},
        flags={"featured": featured, "inStock": in_stock},
    )
    page = run_list_query(store, query)
    return envelope(populate_categories(store, page.items), page=page)


@router.get("/{product_id}", response_model=Envelope, response_model_exclude_none=True)
def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return envelope(_populated(store, _load(store, product_id)))


@router.post(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    origin: Optional[str] = Form(None),
    certifications: Optional[str] = Form(None),
    featured: Optional[str] = Form(None),
    inStock: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    values = validate_product(
        {
            "name": name,
            "description": description,
            "category": category,
            "price": price,
            "tags": tags,
            "origin": origin,
            "certifications": certifications,
            "featured": featured,
            "inStock": inStock,
        }
    ).raise_for_errors()
    values["category"] = _ensure_category(store, values["category"])

    if has_file(image):
        asset = store_upload(assets, settings, image, subfolder="products")
        values["image"], values["imagePublicId"] = asset.path, asset.filename
    else:
        values["image"], values["imagePublicId"] = settings.placeholder_image_url, None

    values.setdefault("inStock", True)
    values.setdefault("featured", False)
    values.setdefault("tags", [])
    values.setdefault("certifications", [])
    product = store.insert(PRODUCTS, values)
    logger.info("Created product %s", product["_id"])
    return envelope(_populated(store, product), message="Product created successfully")


@router.put(
    "/{product_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    origin: Optional[str] = Form(None),
    certifications: Optional[str] = Form(None),
    featured: Optional[str] = Form(None),
    inStock: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
    settings: Settings = Depends(get_app_settings),
):
    product = _load(store, product_id)
    changes = validate_product(
        {
            "name": name,
            "description": description,
            "category": category,
            "price": price,
            "tags": tags,
            "origin": origin,
            "certifications": certifications,
            "featured": featured,
            "inStock": inStock,
        },
        partial=True,
    ).raise_for_errors()
    if "category" in changes:
        changes["category"] = _ensure_category(store, changes["category"])

    if has_file(image):
        asset = store_upload(assets, settings, image, subfolder="products")
        changes["image"], changes["imagePublicId"] = asset.path, asset.filename
        schedule_asset_cleanup(background_tasks, assets, product.get("imagePublicId"))

    updated = store.update(PRODUCTS, product["_id"], changes)
    if updated is None:
        raise ResourceNotFound("Product")
    return envelope(_populated(store, updated), message="Product updated successfully")


@router.delete(
    "/{product_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    store: DocumentStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
):
    product = _load(store, product_id)
    store.delete(PRODUCTS, product["_id"])
    schedule_asset_cleanup(background_tasks, assets, product.get("imagePublicId"))
    logger.info("Deleted product %s", product["_id"])
    return envelope(message="Product deleted successfully")
