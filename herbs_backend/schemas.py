"""
Pydantic schemas for the catalog API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, Field

from herbs_backend.queries import Page


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    limit: int


class FieldErrorModel(BaseModel):
    field: str
    message: str


class Envelope(BaseModel):
    """Shape shared by every response body."""

    success: bool = True
    message: Optional[str] = None
    data: Any = None
    errors: Optional[List[FieldErrorModel]] = None
    pagination: Optional[Pagination] = None
    meta: Optional[dict] = None
    stats: Optional[dict] = None


class CategoryPayload(BaseModel):
    name: Optional[str] = None
    isActive: Optional[Union[bool, str]] = None


class ContactPayload(BaseModel):
    type: Optional[str] = None
    label: Optional[str] = None
    value: Optional[str] = None
    icon: Optional[str] = None


class MessageCreatePayload(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None


class MessageUpdatePayload(BaseModel):
    isRead: Optional[Union[bool, str]] = None
    replied: Optional[Union[bool, str]] = None
    priority: Optional[str] = None
    category: Optional[str] = None


class NotePayload(BaseModel):
    content: Optional[str] = Field(default=None)


class MessageReceipt(BaseModel):
    id: str
    name: str
    subject: str
    priority: str
    createdAt: datetime


class ActivityEntry(BaseModel):
    id: str
    type: str
    message: str
    time: str


def serialize_document(value: Any) -> Any:
    """Render ObjectIds as hex strings, recursing through dicts and lists."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    return value


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    page: Optional[Page] = None,
    **extra: Any,
) -> Envelope:
    return Envelope(
        message=message,
        data=serialize_document(data),
        pagination=Pagination(**page.pagination()) if page is not None else None,
        **{key: serialize_document(value) for key, value in extra.items()},
    )
