"""
Document store abstraction for MongoDB and an in-memory test implementation.

Filters use the MongoDB query shape so the Mongo client can pass them
through untouched; the in-memory client evaluates the subset the API uses
(equality, ``$in``, ``$nin``, ``$ne``, ``$exists``, ``$regex`` and ``$text``).
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
PRODUCTS = "products"
TEAM_MEMBERS = "team_members"
CERTIFICATES = "certificates"
CONTACTS = "contacts"
MESSAGES = "messages"

# Fields covered by each collection's full-text index.
TEXT_INDEXES: Dict[str, tuple[str, ...]] = {
    CATEGORIES: ("name",),
    PRODUCTS: ("name", "description", "tags"),
    TEAM_MEMBERS: ("name", "position", "department"),
    CERTIFICATES: ("name", "description", "issuer"),
    CONTACTS: ("type", "label", "value"),
    MESSAGES: ("name", "email", "subject", "message"),
}

UNIQUE_INDEXES: Dict[str, tuple[str, ...]] = {
    TEAM_MEMBERS: ("email",),
}

FIELD_INDEXES: Dict[str, tuple[str, ...]] = {
    PRODUCTS: ("category", "featured", "inStock"),
    TEAM_MEMBERS: ("department", "isActive"),
    CERTIFICATES: ("category", "isActive", "expiryDate"),
    CONTACTS: ("type",),
    MESSAGES: ("isRead", "replied", "priority", "category"),
}

SortSpec = Sequence[tuple[str, int]]


class DocumentStoreError(Exception):
    """Base class for store-layer failures surfaced to the API."""


class InvalidDocumentId(DocumentStoreError):
    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid document id: {value!r}")


class DuplicateDocumentError(DocumentStoreError):
    def __init__(self, collection: str, fields: Sequence[str]):
        self.collection = collection
        self.fields = tuple(fields)
        super().__init__(
            f"Duplicate value in {collection} for {', '.join(self.fields)}"
        )


def to_object_id(value: Any) -> ObjectId:
    """Coerce a path/body identifier into an ObjectId or raise InvalidDocumentId."""
    if isinstance(value, ObjectId):
        return value
    if value is None:
        # ObjectId(None) would mint a fresh id.
        raise InvalidDocumentId(value)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidDocumentId(value) from None


def is_object_id(value: Any) -> bool:
    return isinstance(value, ObjectId) or (
        isinstance(value, str) and ObjectId.is_valid(value)
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GroupSummary:
    """Aggregated figures for one group of documents."""

    total: int = 0
    counts: Dict[str, int] = field(default_factory=dict)
    average: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def count(self, name: str) -> int:
        return self.counts.get(name, 0)


class DocumentStore(Protocol):
    """Interface for document access."""

    def insert(self, collection: str, doc: dict) -> dict:
        ...

    def get(self, collection: str, doc_id: Any) -> Optional[dict]:
        ...

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Optional[dict]:
        ...

    def find(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        *,
        sort: SortSpec = (),
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict]:
        ...

    def count(self, collection: str, filter: Mapping[str, Any] | None = None) -> int:
        ...

    def update(
        self,
        collection: str,
        doc_id: Any,
        changes: Mapping[str, Any],
        *,
        unset: Iterable[str] = (),
        push: Mapping[str, Any] | None = None,
    ) -> Optional[dict]:
        ...

    def delete(self, collection: str, doc_id: Any) -> bool:
        ...

    def group_summary(
        self,
        collection: str,
        *,
        group_by: Optional[str] = None,
        match: Mapping[str, Any] | None = None,
        conditions: Mapping[str, tuple[str, Any]] | None = None,
        numeric: Optional[str] = None,
    ) -> Dict[Any, GroupSummary]:
        ...

    def ensure_indexes(self) -> None:
        ...

    def collection_names(self) -> list[str]:
        ...


def _lookup(doc: Mapping[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _equals(value: Any, expected: Any) -> bool:
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _regex_matches(value: Any, pattern: str, options: str) -> bool:
    flags = re.IGNORECASE if "i" in options else 0
    candidates = value if isinstance(value, list) else [value]
    return any(
        isinstance(item, str) and re.search(pattern, item, flags) is not None
        for item in candidates
    )


def _apply_operators(value: Any, condition: Mapping[str, Any]) -> bool:
    for op, operand in condition.items():
        if op == "$in":
            if not any(_equals(value, item) for item in operand):
                return False
        elif op == "$nin":
            if any(_equals(value, item) for item in operand):
                return False
        elif op == "$ne":
            if _equals(value, operand):
                return False
        elif op == "$exists":
            if (value is not None) != bool(operand):
                return False
        elif op == "$regex":
            if not _regex_matches(value, operand, condition.get("$options", "")):
                return False
        elif op == "$options":
            continue
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


_WORD = re.compile(r"\w+", re.UNICODE)


def _words(value: Any) -> set[str]:
    if isinstance(value, list):
        return set().union(*(_words(item) for item in value)) if value else set()
    if not isinstance(value, str):
        return set()
    return set(_WORD.findall(value.lower()))


def _sort_key(value: Any) -> tuple[bool, Any]:
    # Missing values sort before present ones, matching MongoDB.
    return (value is not None, value if value is not None else 0)


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(
        self,
        text_indexes: Mapping[str, Sequence[str]] | None = None,
        unique_indexes: Mapping[str, Sequence[str]] | None = None,
    ):
        self.text_indexes = dict(TEXT_INDEXES if text_indexes is None else text_indexes)
        self.unique_indexes = dict(
            UNIQUE_INDEXES if unique_indexes is None else unique_indexes
        )
        self.collections: Dict[str, Dict[ObjectId, dict]] = {}

    def _collection(self, name: str) -> Dict[ObjectId, dict]:
        return self.collections.setdefault(name, {})

    def _matches(self, collection: str, doc: dict, filter: Mapping[str, Any]) -> bool:
        for key, condition in filter.items():
            if key == "$text":
                if not self._text_matches(collection, doc, condition.get("$search", "")):
                    return False
                continue
            value = _lookup(doc, key)
            if isinstance(condition, Mapping) and any(
                str(op).startswith("$") for op in condition
            ):
                if not _apply_operators(value, condition):
                    return False
            elif not _equals(value, condition):
                return False
        return True

    def _text_matches(self, collection: str, doc: dict, search: str) -> bool:
        terms = _words(search)
        if not terms:
            return False
        fields = self.text_indexes.get(collection, ())
        if not fields:
            raise ValueError(f"No text index defined for {collection}")
        words: set[str] = set()
        for name in fields:
            words |= _words(_lookup(doc, name))
        return bool(terms & words)

    def _check_unique(
        self, collection: str, doc: dict, exclude: Optional[ObjectId] = None
    ) -> None:
        for name in self.unique_indexes.get(collection, ()):
            value = doc.get(name)
            if value is None:
                continue
            for other_id, other in self._collection(collection).items():
                if other_id != exclude and other.get(name) == value:
                    raise DuplicateDocumentError(collection, [name])

    def insert(self, collection: str, doc: dict) -> dict:
        record = copy.deepcopy(doc)
        record["_id"] = to_object_id(record["_id"]) if "_id" in record else ObjectId()
        now = utcnow()
        record.setdefault("createdAt", now)
        record.setdefault("updatedAt", record["createdAt"])
        self._check_unique(collection, record)
        self._collection(collection)[record["_id"]] = record
        return copy.deepcopy(record)

    def get(self, collection: str, doc_id: Any) -> Optional[dict]:
        record = self._collection(collection).get(to_object_id(doc_id))
        return copy.deepcopy(record) if record is not None else None

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Optional[dict]:
        matches = self.find(collection, filter, limit=1)
        return matches[0] if matches else None

    def find(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        *,
        sort: SortSpec = (),
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict]:
        filter = filter or {}
        docs = [
            doc
            for doc in self._collection(collection).values()
            if self._matches(collection, doc, filter)
        ]
        for name, direction in reversed(list(sort)):
            docs.sort(
                key=lambda doc: _sort_key(_lookup(doc, name)),
                reverse=direction == DESCENDING,
            )
        end = skip + limit if limit else None
        return [copy.deepcopy(doc) for doc in docs[skip:end]]

    def count(self, collection: str, filter: Mapping[str, Any] | None = None) -> int:
        filter = filter or {}
        return sum(
            1
            for doc in self._collection(collection).values()
            if self._matches(collection, doc, filter)
        )

    def update(
        self,
        collection: str,
        doc_id: Any,
        changes: Mapping[str, Any],
        *,
        unset: Iterable[str] = (),
        push: Mapping[str, Any] | None = None,
    ) -> Optional[dict]:
        key = to_object_id(doc_id)
        current = self._collection(collection).get(key)
        if current is None:
            return None
        record = copy.deepcopy(current)
        record.update(copy.deepcopy(dict(changes)))
        for name in unset:
            record.pop(name, None)
        for name, item in (push or {}).items():
            record.setdefault(name, []).append(copy.deepcopy(item))
        record["updatedAt"] = utcnow()
        self._check_unique(collection, record, exclude=key)
        self._collection(collection)[key] = record
        return copy.deepcopy(record)

    def delete(self, collection: str, doc_id: Any) -> bool:
        return self._collection(collection).pop(to_object_id(doc_id), None) is not None

    def group_summary(
        self,
        collection: str,
        *,
        group_by: Optional[str] = None,
        match: Mapping[str, Any] | None = None,
        conditions: Mapping[str, tuple[str, Any]] | None = None,
        numeric: Optional[str] = None,
    ) -> Dict[Any, GroupSummary]:
        conditions = conditions or {}
        groups: Dict[Any, GroupSummary] = {}
        numbers: Dict[Any, List[float]] = {}
        for doc in self.find(collection, match or {}):
            key = _lookup(doc, group_by) if group_by else None
            summary = groups.setdefault(
                key, GroupSummary(counts={name: 0 for name in conditions})
            )
            summary.total += 1
            for name, (path, expected) in conditions.items():
                if _lookup(doc, path) == expected:
                    summary.counts[name] += 1
            if numeric:
                value = _lookup(doc, numeric)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    numbers.setdefault(key, []).append(float(value))
        for key, values in numbers.items():
            groups[key].average = sum(values) / len(values)
            groups[key].minimum = min(values)
            groups[key].maximum = max(values)
        return groups

    def ensure_indexes(self) -> None:
        return None

    def collection_names(self) -> list[str]:
        return sorted(name for name, docs in self.collections.items() if docs)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class MongoDocumentStore:
    """
    pymongo-backed implementation. The client connects lazily on first use
    and keeps the driver's own connection pool.
    """

    def __init__(self, uri: str, database: str):
        if not uri:
            raise ValueError("MONGODB_URI is required for MongoDocumentStore")
        self.client = MongoClient(uri, tz_aware=True)
        self.db = self.client[database]

    def insert(self, collection: str, doc: dict) -> dict:
        record = dict(doc)
        now = utcnow()
        record.setdefault("createdAt", now)
        record.setdefault("updatedAt", record["createdAt"])
        try:
            result = self.db[collection].insert_one(record)
        except DuplicateKeyError as exc:
            raise DuplicateDocumentError(collection, _duplicate_fields(exc)) from exc
        record["_id"] = result.inserted_id
        return record

    def get(self, collection: str, doc_id: Any) -> Optional[dict]:
        return self.db[collection].find_one({"_id": to_object_id(doc_id)})

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Optional[dict]:
        return self.db[collection].find_one(dict(filter))

    def find(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        *,
        sort: SortSpec = (),
        skip: int = 0,
        limit: int = 0,
    ) -> list[dict]:
        cursor = self.db[collection].find(dict(filter or {}))
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def count(self, collection: str, filter: Mapping[str, Any] | None = None) -> int:
        return self.db[collection].count_documents(dict(filter or {}))

    def update(
        self,
        collection: str,
        doc_id: Any,
        changes: Mapping[str, Any],
        *,
        unset: Iterable[str] = (),
        push: Mapping[str, Any] | None = None,
    ) -> Optional[dict]:
        operations: Dict[str, Any] = {"$set": {**changes, "updatedAt": utcnow()}}
        unset = list(unset)
        if unset:
            operations["$unset"] = {name: "" for name in unset}
        if push:
            operations["$push"] = dict(push)
        try:
            return self.db[collection].find_one_and_update(
                {"_id": to_object_id(doc_id)},
                operations,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise DuplicateDocumentError(collection, _duplicate_fields(exc)) from exc

    def delete(self, collection: str, doc_id: Any) -> bool:
        result = self.db[collection].delete_one({"_id": to_object_id(doc_id)})
        return result.deleted_count == 1

    def group_summary(
        self,
        collection: str,
        *,
        group_by: Optional[str] = None,
        match: Mapping[str, Any] | None = None,
        conditions: Mapping[str, tuple[str, Any]] | None = None,
        numeric: Optional[str] = None,
    ) -> Dict[Any, GroupSummary]:
        conditions = conditions or {}
        group: Dict[str, Any] = {
            "_id": f"${group_by}" if group_by else None,
            "total": {"$sum": 1},
        }
        for name, (path, expected) in conditions.items():
            group[f"count_{name}"] = {
                "$sum": {"$cond": [{"$eq": [f"${path}", expected]}, 1, 0]}
            }
        if numeric:
            group["average"] = {"$avg": f"${numeric}"}
            group["minimum"] = {"$min": f"${numeric}"}
            group["maximum"] = {"$max": f"${numeric}"}
        pipeline: list[dict] = []
        if match:
            pipeline.append({"$match": dict(match)})
        pipeline.append({"$group": group})

        results: Dict[Any, GroupSummary] = {}
        for row in self.db[collection].aggregate(pipeline):
            results[row["_id"]] = GroupSummary(
                total=row["total"],
                counts={name: row[f"count_{name}"] for name in conditions},
                average=row.get("average"),
                minimum=row.get("minimum"),
                maximum=row.get("maximum"),
            )
        return results

    def ensure_indexes(self) -> None:
        try:
            for collection, fields in TEXT_INDEXES.items():
                self.db[collection].create_index(
                    [(name, TEXT) for name in fields], name=f"{collection}_text"
                )
                self.db[collection].create_index([("createdAt", DESCENDING)])
            for collection, fields in UNIQUE_INDEXES.items():
                for name in fields:
                    self.db[collection].create_index([(name, ASCENDING)], unique=True)
            for collection, fields in FIELD_INDEXES.items():
                for name in fields:
                    self.db[collection].create_index([(name, ASCENDING)])
        except PyMongoError as exc:
            raise DocumentStoreError(f"Failed to create indexes: {exc}") from exc
        logger.info("Document store indexes ensured on %s", self.db.name)

    def collection_names(self) -> list[str]:
        return sorted(self.db.list_collection_names())


def _duplicate_fields(exc: DuplicateKeyError) -> list[str]:
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    return list(key_pattern) or ["_id"]
