"""
Cross-collection operations used by the routes: category counts and the
deletion guard, message statistics, the dashboard overview and seeding.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import DESCENDING

from herbs_backend.db import (
    CATEGORIES,
    CERTIFICATES,
    CONTACTS,
    MESSAGES,
    PRODUCTS,
    TEAM_MEMBERS,
    DocumentStore,
    GroupSummary,
    to_object_id,
    utcnow,
)
from herbs_backend.errors import ConflictError, ResourceNotFound
from herbs_backend.schemas import ActivityEntry

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 8

# (collection, activity type, how many to sample, message template)
ACTIVITY_SOURCES = (
    (CATEGORIES, "category", 3, 'New category "{name}" was added'),
    (PRODUCTS, "product", 3, 'New product "{name}" was added'),
    (CERTIFICATES, "certificate", 2, 'Certificate "{name}" was updated'),
    (TEAM_MEMBERS, "team", 2, 'New team member "{name}" was added'),
    (MESSAGES, "message", 2, 'New contact message from "{name}"'),
)

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_SEPARATORS.sub("-", name.lower()).strip("-")


def find_category_by_name(
    store: DocumentStore, name: str, exclude_id: Optional[ObjectId] = None
) -> Optional[dict]:
    """Case-insensitive exact-name lookup."""
    filter: Dict[str, Any] = {
        "name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}
    }
    if exclude_id is not None:
        filter["_id"] = {"$ne": exclude_id}
    return store.find_one(CATEGORIES, filter)


def category_product_counts(
    store: DocumentStore, category_ids: Optional[Iterable[ObjectId]] = None
) -> Dict[Any, GroupSummary]:
    match = None
    if category_ids is not None:
        match = {"category": {"$in": list(category_ids)}}
    return store.group_summary(
        PRODUCTS,
        group_by="category",
        match=match,
        conditions={"inStock": ("inStock", True)},
    )


def attach_product_counts(store: DocumentStore, categories: List[dict]) -> List[dict]:
    counts = category_product_counts(store, [item["_id"] for item in categories])
    for category in categories:
        summary = counts.get(category["_id"], GroupSummary())
        category["productCount"] = summary.total
        category["inStockCount"] = summary.count("inStock")
    return categories


def category_stats(store: DocumentStore, category_id: ObjectId) -> dict:
    summaries = store.group_summary(
        PRODUCTS,
        match={"category": category_id},
        conditions={"inStock": ("inStock", True), "featured": ("featured", True)},
        numeric="price",
    )
    summary = summaries.get(None, GroupSummary())
    return {
        "total": summary.total,
        "inStock": summary.count("inStock"),
        "featured": summary.count("featured"),
        "avgPrice": summary.average or 0,
    }


def category_detail(store: DocumentStore, category_id: Any) -> dict:
    category = store.get(CATEGORIES, category_id)
    if category is None:
        raise ResourceNotFound("Category")
    products = store.find(
        PRODUCTS,
        {"category": category["_id"]},
        sort=[("createdAt", DESCENDING), ("_id", DESCENDING)],
    )
    return {
        "category": category,
        "products": products,
        "stats": category_stats(store, category["_id"]),
    }


def categories_overview(store: DocumentStore) -> dict:
    """Per-category and overall product figures for the admin overview."""
    per_category = store.group_summary(
        PRODUCTS,
        group_by="category",
        conditions={
            "inStock": ("inStock", True),
            "outOfStock": ("inStock", False),
            "featured": ("featured", True),
        },
        numeric="price",
    )
    names = {
        item["_id"]: item
        for item in store.find(
            CATEGORIES, {"_id": {"$in": [key for key in per_category if key]}}
        )
    }
    category_stats_rows = []
    recent_products = []
    for key, summary in sorted(
        per_category.items(), key=lambda item: item[1].total, reverse=True
    ):
        category = names.get(key)
        category_stats_rows.append(
            {
                "_id": key,
                "name": category.get("name") if category else None,
                "slug": category.get("slug") if category else None,
                "total": summary.total,
                "inStock": summary.count("inStock"),
                "outOfStock": summary.count("outOfStock"),
                "featured": summary.count("featured"),
                "avgPrice": summary.average,
                "minPrice": summary.minimum,
                "maxPrice": summary.maximum,
            }
        )
        latest = store.find(
            PRODUCTS,
            {"category": key},
            sort=[("createdAt", DESCENDING), ("_id", DESCENDING)],
            limit=1,
        )
        recent_products.append(
            {
                "_id": key,
                "latestProduct": latest[0] if latest else None,
                "recentCount": summary.total,
            }
        )

    overall = store.group_summary(
        PRODUCTS,
        conditions={"inStock": ("inStock", True), "featured": ("featured", True)},
        numeric="price",
    ).get(None, GroupSummary())
    return {
        "categoryStats": category_stats_rows,
        "overallStats": {
            "totalProducts": overall.total,
            "totalInStock": overall.count("inStock"),
            "totalFeatured": overall.count("featured"),
            "avgPrice": overall.average or 0,
        },
        "recentProducts": recent_products,
        "totalCategories": store.count(CATEGORIES, {"isActive": True}),
    }


def delete_category(store: DocumentStore, category_id: Any) -> dict:
    """
    Delete a category that no product references.

    Raises ``ConflictError`` naming the number of referencing products when
    the category is still in use; nothing is deleted in that case.
    """
    key = to_object_id(category_id)
    category = store.get(CATEGORIES, key)
    if category is None:
        raise ResourceNotFound("Category")
    product_count = store.count(PRODUCTS, {"category": key})
    if product_count > 0:
        raise ConflictError(
            f"Cannot delete category. It has {product_count} products. "
            "Please move or delete the products first."
        )
    store.delete(CATEGORIES, key)
    logger.info("Deleted category %s (%s)", key, category.get("name"))
    return category


def populate_categories(store: DocumentStore, products: List[dict]) -> List[dict]:
    """Replace each product's category id with ``{_id, name, slug}``."""
    ids = {
        product["category"]
        for product in products
        if isinstance(product.get("category"), ObjectId)
    }
    if not ids:
        return products
    categories = {
        item["_id"]: {"_id": item["_id"], "name": item.get("name"), "slug": item.get("slug")}
        for item in store.find(CATEGORIES, {"_id": {"$in": list(ids)}})
    }
    for product in products:
        if isinstance(product.get("category"), ObjectId):
            product["category"] = categories.get(product["category"])
    return products


def message_stats(store: DocumentStore) -> dict:
    summary = store.group_summary(
        MESSAGES,
        conditions={
            "unread": ("isRead", False),
            "unreplied": ("replied", False),
            "highPriority": ("priority", "high"),
        },
    ).get(None, GroupSummary())
    return {
        "total": summary.total,
        "unread": summary.count("unread"),
        "unreplied": summary.count("unreplied"),
        "highPriority": summary.count("highPriority"),
    }


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = max((now - moment).total_seconds(), 0)
    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hours ago"
    return f"{hours // 24} days ago"


def recent_activity(store: DocumentStore, now: Optional[datetime] = None) -> List[dict]:
    now = now or utcnow()
    entries = []
    for collection, kind, sample, template in ACTIVITY_SOURCES:
        for doc in store.find(
            collection,
            sort=[("createdAt", DESCENDING), ("_id", DESCENDING)],
            limit=sample,
        ):
            entries.append((doc["createdAt"], kind, doc, template))

    def _timestamp(entry) -> datetime:
        moment = entry[0]
        return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)

    entries.sort(key=_timestamp, reverse=True)
    return [
        ActivityEntry(
            id=f"{kind}_{doc['_id']}",
            type=kind,
            message=template.format(name=doc.get("name", "")),
            time=time_ago(created_at, now),
        ).model_dump()
        for created_at, kind, doc, template in entries[:RECENT_ACTIVITY_LIMIT]
    ]


def dashboard_overview(store: DocumentStore) -> dict:
    counts = {
        "categories": store.count(CATEGORIES),
        "products": store.count(PRODUCTS),
        "certificates": store.count(CERTIFICATES),
        "team": store.count(TEAM_MEMBERS),
        "messages": store.count(MESSAGES),
        "unreadMessages": store.count(MESSAGES, {"isRead": False}),
        "contactMethods": store.count(CONTACTS),
    }
    return {
        "stats": {name: {"count": value} for name, value in counts.items()},
        "recentActivities": recent_activity(store),
    }


DEFAULT_CATEGORIES = ("Herbs", "Seeds", "Legumes", "Spices")


def seed_categories(
    store: DocumentStore, names: Iterable[str] = DEFAULT_CATEGORIES, force: bool = False
) -> List[str]:
    """
    Create the default categories. Nothing is written when any category
    exists unless ``force`` is set; names already present are skipped either
    way. Returns the names that were created.
    """
    if not force and store.count(CATEGORIES) > 0:
        logger.info("Categories already exist; skipping seed")
        return []
    created = []
    for name in names:
        if find_category_by_name(store, name):
            logger.info("Category already exists: %s", name)
            continue
        store.insert(CATEGORIES, {"name": name, "slug": slugify(name), "isActive": True})
        logger.info("Created category: %s", name)
        created.append(name)
    return created
