"""
Inbound message routes. Creation is public (the site contact form); every
other operation requires an admin token.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from herbs_backend.classifier import MESSAGE_PRIORITIES, classify_priority
from herbs_backend.db import MESSAGES, DocumentStore, utcnow
from herbs_backend.dependencies import get_list_params, get_store, require_admin
from herbs_backend.errors import (
    FieldError,
    ResourceNotFound,
    ValidationFailed,
    parse_object_id,
)
from herbs_backend.queries import (
    MESSAGE_LISTING,
    ListParams,
    build_list_query,
    run_list_query,
)
from herbs_backend.schemas import (
    Envelope,
    MessageCreatePayload,
    MessageReceipt,
    MessageUpdatePayload,
    NotePayload,
    envelope,
)
from herbs_backend.services import message_stats
from herbs_backend.validation import (
    MESSAGE_CATEGORIES,
    validate_message,
    validate_message_update,
    validate_note,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _load(store: DocumentStore, message_id: str) -> dict:
    message = store.get(MESSAGES, parse_object_id(message_id, "message"))
    if message is None:
        raise ResourceNotFound("Message")
    return message


@router.get(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def list_messages(
    params: ListParams = Depends(get_list_params),
    category: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    is_read: Optional[str] = Query(None, alias="isRead"),
    replied: Optional[str] = Query(None),
    store: DocumentStore = Depends(get_store),
):
    errors = []
    if category is not None and category not in MESSAGE_CATEGORIES:
        errors.append(FieldError("category", "Invalid category"))
    if priority is not None and priority not in MESSAGE_PRIORITIES:
        errors.append(FieldError("priority", "Invalid priority"))
    if errors:
        raise ValidationFailed(errors)

    query = build_list_query(
        MESSAGE_LISTING,
        params,
        filters={"category": category, "priority": priority},
        flags={"isRead": is_read, "replied": replied},
    )
    page = run_list_query(store, query)
    return envelope(page.items, page=page, stats=message_stats(store))


@router.get(
    "/{message_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def get_message(message_id: str, store: DocumentStore = Depends(get_store)):
    message = _load(store, message_id)
    if not message.get("isRead"):
        message = store.update(
            MESSAGES, message["_id"], {"isRead": True, "readAt": utcnow()}
        ) or message
    return envelope(message)


@router.post("", response_model=Envelope, response_model_exclude_none=True, status_code=201)
def create_message(
    payload: MessageCreatePayload,
    request: Request,
    store: DocumentStore = Depends(get_store),
):
    values = validate_message(payload.model_dump(exclude_unset=True)).raise_for_errors()
    values["priority"] = classify_priority(
        values["subject"], values["message"], values.get("category")
    )
    values.setdefault("category", "general")
    values.setdefault("source", "website")
    values.update(
        {
            "isRead": False,
            "replied": False,
            "notes": [],
            "ipAddress": request.client.host if request.client else None,
            "userAgent": request.headers.get("user-agent"),
        }
    )
    message = store.insert(MESSAGES, values)
    logger.info(
        "Received message %s with priority %s", message["_id"], message["priority"]
    )
    receipt = MessageReceipt(
        id=str(message["_id"]),
        name=message["name"],
        subject=message["subject"],
        priority=message["priority"],
        createdAt=message["createdAt"],
    )
    return envelope(
        receipt.model_dump(),
        message="Message sent successfully. We will get back to you soon!",
    )


@router.put(
    "/{message_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_message(
    message_id: str,
    payload: MessageUpdatePayload,
    store: DocumentStore = Depends(get_store),
):
    message = _load(store, message_id)
    changes = validate_message_update(
        payload.model_dump(exclude_unset=True)
    ).raise_for_errors()
    now = utcnow()
    if changes.get("isRead") and not message.get("readAt"):
        changes["readAt"] = now
    if changes.get("replied") and not message.get("repliedAt"):
        changes["repliedAt"] = now

    updated = store.update(MESSAGES, message["_id"], changes)
    if updated is None:
        raise ResourceNotFound("Message")
    return envelope(updated, message="Message updated successfully")


@router.post(
    "/{message_id}/notes",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def add_note(
    message_id: str,
    payload: NotePayload,
    store: DocumentStore = Depends(get_store),
):
    message = _load(store, message_id)
    values = validate_note(payload.model_dump(exclude_unset=True)).raise_for_errors()
    note = {"content": values["content"], "addedAt": utcnow()}
    updated = store.update(MESSAGES, message["_id"], {}, push={"notes": note})
    if updated is None:
        raise ResourceNotFound("Message")
    return envelope(updated, message="Note added successfully")


@router.delete(
    "/{message_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def delete_message(message_id: str, store: DocumentStore = Depends(get_store)):
    message = _load(store, message_id)
    store.delete(MESSAGES, message["_id"])
    logger.info("Deleted message %s", message["_id"])
    return envelope(message="Message deleted successfully")
