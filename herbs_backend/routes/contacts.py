"""
Contact method routes. Website and social media entries are never listed
or accepted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from herbs_backend.db import CONTACTS, DocumentStore
from herbs_backend.dependencies import get_list_params, get_store, require_admin
from herbs_backend.errors import ResourceNotFound, parse_object_id
from herbs_backend.queries import (
    CONTACT_LISTING,
    ListParams,
    build_list_query,
    run_list_query,
)
from herbs_backend.schemas import ContactPayload, Envelope, envelope
from herbs_backend.validation import (
    ALLOWED_CONTACT_TYPES,
    EXCLUDED_CONTACT_TYPES,
    validate_contact,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


def _load(store: DocumentStore, contact_id: str) -> dict:
    contact = store.get(CONTACTS, parse_object_id(contact_id, "contact"))
    if contact is None:
        raise ResourceNotFound("Contact method")
    return contact


@router.get("", response_model=Envelope, response_model_exclude_none=True)
def list_contacts(
    params: ListParams = Depends(get_list_params),
    store: DocumentStore = Depends(get_store),
):
    query = build_list_query(
        CONTACT_LISTING,
        params,
        filters={"type": {"$nin": list(EXCLUDED_CONTACT_TYPES)}},
    )
    page = run_list_query(store, query)
    return envelope(
        page.items,
        page=page,
        meta={
            "total": page.total,
            "sortBy": query.sort_by,
            "sortOrder": query.sort_order,
        },
    )


@router.get("/types", response_model=Envelope, response_model_exclude_none=True)
def list_contact_types():
    return envelope(
        {"allowed": list(ALLOWED_CONTACT_TYPES), "excluded": list(EXCLUDED_CONTACT_TYPES)}
    )


@router.get("/{contact_id}", response_model=Envelope, response_model_exclude_none=True)
def get_contact(contact_id: str, store: DocumentStore = Depends(get_store)):
    return envelope(_load(store, contact_id))


@router.post(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_contact(payload: ContactPayload, store: DocumentStore = Depends(get_store)):
    values = validate_contact(payload.model_dump(exclude_unset=True)).raise_for_errors()
    contact = store.insert(CONTACTS, values)
    logger.info("Created contact method %s (%s)", contact["_id"], contact["type"])
    return envelope(contact, message="Contact method created successfully")


@router.put(
    "/{contact_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_contact(
    contact_id: str,
    payload: ContactPayload,
    store: DocumentStore = Depends(get_store),
):
    contact = _load(store, contact_id)
    changes = validate_contact(
        payload.model_dump(exclude_unset=True), partial=True
    ).raise_for_errors()
    updated = store.update(CONTACTS, contact["_id"], changes)
    if updated is None:
        raise ResourceNotFound("Contact method")
    return envelope(updated, message="Contact method updated successfully")


@router.delete(
    "/{contact_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def delete_contact(contact_id: str, store: DocumentStore = Depends(get_store)):
    contact = _load(store, contact_id)
    store.delete(CONTACTS, contact["_id"])
    logger.info("Deleted contact method %s", contact["_id"])
    return envelope(message="Contact method deleted successfully")
