"""
Query building shared by every list endpoint: pagination, tri-state boolean
filters, full-text search and allow-listed sorting.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pymongo import ASCENDING, DESCENDING

from herbs_backend.db import (
    CATEGORIES,
    CERTIFICATES,
    CONTACTS,
    MESSAGES,
    PRODUCTS,
    TEAM_MEMBERS,
    DocumentStore,
)
from herbs_backend.errors import FieldError, ValidationFailed

MAX_PAGE_SIZE = 100
MAX_SEARCH_LENGTH = 100
DEFAULT_SORT_FIELD = "createdAt"


@dataclass(frozen=True)
class ResourceQuery:
    """Listing rules for one collection."""

    collection: str
    default_limit: int
    sort_fields: tuple[str, ...] = (DEFAULT_SORT_FIELD,)


PRODUCT_LISTING = ResourceQuery(PRODUCTS, 100, ("createdAt", "name", "price"))
CATEGORY_LISTING = ResourceQuery(CATEGORIES, 50, ("createdAt", "name"))
TEAM_LISTING = ResourceQuery(TEAM_MEMBERS, 10, ("createdAt", "name", "position"))
CERTIFICATE_LISTING = ResourceQuery(
    CERTIFICATES, 10, ("createdAt", "name", "issueDate", "expiryDate")
)
CONTACT_LISTING = ResourceQuery(CONTACTS, 100, ("type", "label", "createdAt"))
MESSAGE_LISTING = ResourceQuery(MESSAGES, 10, ("createdAt", "priority"))


@dataclass(frozen=True)
class ListParams:
    page: int = 1
    limit: Optional[int] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


@dataclass(frozen=True)
class ListQuery:
    collection: str
    filter: Dict[str, Any]
    sort: List[tuple[str, int]]
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort_by(self) -> str:
        return self.sort[0][0]

    @property
    def sort_order(self) -> str:
        return "asc" if self.sort[0][1] == ASCENDING else "desc"


@dataclass(frozen=True)
class Page:
    items: List[dict]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def pagination(self) -> dict:
        return {
            "current": self.page,
            "pages": self.pages,
            "total": self.total,
            "limit": self.limit,
        }


def parse_optional_bool(value: Optional[str], field: str) -> Optional[bool]:
    """
    Parse a query-string flag. ``None`` means the caller did not ask for a
    filter; only the literals ``true`` and ``false`` are accepted otherwise.
    """
    if value is None:
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValidationFailed([FieldError(field, f"{field} must be 'true' or 'false'")])


def build_list_query(
    resource: ResourceQuery,
    params: ListParams,
    *,
    filters: Mapping[str, Any] | None = None,
    flags: Mapping[str, Optional[str]] | None = None,
) -> ListQuery:
    """
    Translate request parameters into a filter, sort and page window.

    ``filters`` are applied as-is when not ``None``; ``flags`` hold raw
    boolean query-string values keyed by document field.
    """
    errors: list[FieldError] = []

    if params.page < 1:
        errors.append(FieldError("page", "Page must be a positive integer"))
    limit = resource.default_limit if params.limit is None else params.limit
    if limit < 1:
        errors.append(FieldError("limit", "Limit must be a positive integer"))
    limit = min(limit, MAX_PAGE_SIZE)

    filter: Dict[str, Any] = {
        name: value for name, value in (filters or {}).items() if value is not None
    }
    for name, raw in (flags or {}).items():
        try:
            parsed = parse_optional_bool(raw, name)
        except ValidationFailed as exc:
            errors.extend(exc.errors)
            continue
        if parsed is not None:
            filter[name] = parsed

    search = (params.search or "").strip()
    if len(search) > MAX_SEARCH_LENGTH:
        errors.append(FieldError("search", "Search term too long"))
    elif search:
        filter["$text"] = {"$search": search}

    sort_by = params.sort_by or DEFAULT_SORT_FIELD
    if sort_by not in resource.sort_fields:
        errors.append(FieldError("sortBy", "Invalid sort field"))
    sort_order = params.sort_order or "desc"
    if sort_order not in ("asc", "desc"):
        errors.append(FieldError("sortOrder", "Sort order must be asc or desc"))

    if errors:
        raise ValidationFailed(errors)

    direction = ASCENDING if sort_order == "asc" else DESCENDING
    # _id breaks ties so pages never overlap when timestamps collide.
    sort = [(sort_by, direction), ("_id", direction)]
    return ListQuery(
        collection=resource.collection,
        filter=filter,
        sort=sort,
        page=params.page,
        limit=limit,
    )


def run_list_query(store: DocumentStore, query: ListQuery) -> Page:
    items = store.find(
        query.collection,
        query.filter,
        sort=query.sort,
        skip=query.skip,
        limit=query.limit,
    )
    total = store.count(query.collection, query.filter)
    return Page(items=items, total=total, page=query.page, limit=query.limit)
