"""
Explicit per-entity validation.

Each ``validate_*`` function takes raw request values and returns a
``ValidationResult`` with cleaned values and a list of field errors. With
``partial=True`` (updates) absent fields are skipped instead of reported.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from herbs_backend.classifier import MESSAGE_PRIORITIES
from herbs_backend.db import is_object_id
from herbs_backend.errors import FieldError, ValidationFailed
from herbs_backend.queries import parse_optional_bool

ALLOWED_CONTACT_TYPES = (
    "phone",
    "email",
    "address",
    "whatsapp",
    "telegram",
    "skype",
    "fax",
    "other",
)
EXCLUDED_CONTACT_TYPES = (
    "website",
    "social",
    "facebook",
    "twitter",
    "instagram",
    "linkedin",
    "youtube",
    "tiktok",
)
CERTIFICATE_CATEGORIES = ("quality", "organic", "safety", "environmental", "other")
MESSAGE_CATEGORIES = (
    "general",
    "support",
    "sales",
    "partnership",
    "complaint",
    "herbs",
    "other",
)
MESSAGE_SOURCES = ("website", "email", "phone", "social", "other")
SOCIAL_LINK_KEYS = ("linkedin", "twitter", "facebook")


@dataclass
class ValidationResult:
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Dict[str, Any]:
        if self.errors:
            raise ValidationFailed(self.errors)
        return self.values


class _Checker:
    def __init__(self, data: Mapping[str, Any], partial: bool):
        self.data = data
        self.partial = partial
        self.result = ValidationResult()

    def _raw(self, name: str) -> Any:
        value = self.data.get(name)
        if isinstance(value, str):
            value = value.strip()
        return value

    def _present(self, value: Any) -> bool:
        return value is not None and value != ""

    def _fail(self, name: str, message: str) -> None:
        self.result.errors.append(FieldError(name, message))

    def text(
        self,
        name: str,
        *,
        max_length: int,
        required: bool = False,
        message: Optional[str] = None,
        allow_blank: bool = False,
    ) -> None:
        value = self._raw(name)
        if not self._present(value):
            if required and not (self.partial and value is None):
                self._fail(name, message or f"{name} is required")
            elif allow_blank and value == "":
                self.result.values[name] = ""
            return
        if not isinstance(value, str):
            value = str(value)
        if len(value) > max_length:
            self._fail(name, message or f"{name} cannot exceed {max_length} characters")
            return
        self.result.values[name] = value

    def choice(self, name: str, choices: Iterable[str], message: str) -> None:
        value = self._raw(name)
        if not self._present(value):
            return
        if value not in tuple(choices):
            self._fail(name, message)
            return
        self.result.values[name] = value

    def email(self, name: str, *, required: bool = False) -> None:
        value = self._raw(name)
        if not self._present(value):
            if required and not (self.partial and value is None):
                self._fail(name, "Please provide a valid email")
            return
        try:
            checked = validate_email(str(value), check_deliverability=False)
        except EmailNotValidError:
            self._fail(name, "Please provide a valid email")
            return
        self.result.values[name] = checked.normalized.lower()

    def number(self, name: str, *, minimum: float, message: str) -> None:
        value = self._raw(name)
        if not self._present(value):
            return
        try:
            number = float(value)
        except (TypeError, ValueError):
            self._fail(name, f"{name} must be a number")
            return
        if not math.isfinite(number):
            self._fail(name, f"{name} must be a number")
            return
        if number < minimum:
            self._fail(name, message)
            return
        self.result.values[name] = number

    def flag(self, name: str) -> None:
        value = self.data.get(name)
        if value is None or value == "":
            return
        if isinstance(value, bool):
            self.result.values[name] = value
            return
        try:
            self.result.values[name] = parse_optional_bool(str(value), name)
        except ValidationFailed as exc:
            self.result.errors.extend(exc.errors)

    def date(self, name: str) -> None:
        value = self._raw(name)
        if not self._present(value):
            return
        if isinstance(value, datetime):
            parsed = value
        else:
            try:
                parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            except ValueError:
                self._fail(name, f"{name} must be an ISO 8601 date")
                return
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        self.result.values[name] = parsed

    def string_list(self, name: str) -> None:
        value = self.data.get(name)
        if value is None or value == "":
            return
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, (list, tuple)):
            items = [str(item) for item in value]
        else:
            self._fail(name, f"{name} must be a list or comma-separated string")
            return
        self.result.values[name] = [item.strip() for item in items if item.strip()]

    def object_id(self, name: str, *, required: bool = False, message: str) -> None:
        value = self._raw(name)
        if not self._present(value):
            if required and not (self.partial and value is None):
                self._fail(name, message)
            return
        if not is_object_id(value):
            self._fail(name, message)
            return
        self.result.values[name] = value


def validate_category(data: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    check = _Checker(data, partial)
    check.text(
        "name",
        max_length=50,
        required=True,
        message="Category name must be between 1 and 50 characters",
    )
    check.flag("isActive")
    return check.result


def validate_product(data: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    check = _Checker(data, partial)
    check.text(
        "name",
        max_length=100,
        required=True,
        message="Product name must be between 1 and 100 characters",
    )
    check.text(
        "description",
        max_length=1000,
        required=True,
        message="Description must be between 1 and 1000 characters",
    )
    check.object_id("category", required=True, message="Invalid category ID format")
    check.number("price", minimum=0, message="Price cannot be negative")
    check.string_list("tags")
    check.text("origin", max_length=100)
    check.string_list("certifications")
    check.flag("featured")
    check.flag("inStock")
    return check.result


def _social_links(check: _Checker) -> None:
    value = check.data.get("socialLinks")
    if value is None or value == "":
        return
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            check._fail("socialLinks", "socialLinks must be a JSON object")
            return
    if not isinstance(value, Mapping):
        check._fail("socialLinks", "socialLinks must be a JSON object")
        return
    unknown = set(value) - set(SOCIAL_LINK_KEYS)
    if unknown:
        check._fail("socialLinks", f"Unknown social links: {', '.join(sorted(unknown))}")
        return
    check.result.values["socialLinks"] = {
        key: str(link).strip() for key, link in value.items() if link
    }


def validate_team_member(
    data: Mapping[str, Any], *, partial: bool = False
) -> ValidationResult:
    check = _Checker(data, partial)
    check.text(
        "name",
        max_length=100,
        required=True,
        message="Name must be between 1 and 100 characters",
    )
    check.text(
        "position",
        max_length=100,
        required=True,
        message="Position must be between 1 and 100 characters",
    )
    check.email("email", required=True)
    check.text(
        "phone",
        max_length=20,
        required=True,
        message="Phone number must be between 1 and 20 characters",
    )
    check.text(
        "whatsapp",
        max_length=20,
        required=True,
        message="WhatsApp number must be between 1 and 20 characters",
    )
    check.text("bio", max_length=500, message="Bio cannot exceed 500 characters")
    check.text(
        "department", max_length=50, message="Department cannot exceed 50 characters"
    )
    check.date("startDate")
    check.string_list("skills")
    check.string_list("languages")
    _social_links(check)
    check.flag("isActive")
    return check.result


def validate_certificate(
    data: Mapping[str, Any], *, partial: bool = False
) -> ValidationResult:
    check = _Checker(data, partial)
    check.text(
        "name",
        max_length=100,
        required=True,
        message="Certificate name must be between 1 and 100 characters",
    )
    check.text(
        "description",
        max_length=1000,
        required=True,
        message="Description must be between 1 and 1000 characters",
    )
    check.choice("category", CERTIFICATE_CATEGORIES, "Invalid category")
    check.text("issuer", max_length=100, message="Issuer name cannot exceed 100 characters")
    check.text(
        "certificateNumber",
        max_length=50,
        message="Certificate number cannot exceed 50 characters",
    )
    check.date("issueDate")
    check.date("expiryDate")
    check.text("documentUrl", max_length=2048)
    check.flag("isActive")
    return check.result


def validate_contact(data: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    check = _Checker(data, partial)
    check.text(
        "type",
        max_length=50,
        required=True,
        message="Type must be between 1 and 50 characters",
    )
    contact_type = check.result.values.get("type")
    if contact_type and contact_type.lower() in EXCLUDED_CONTACT_TYPES:
        del check.result.values["type"]
        check._fail("type", "Website and social media contact types are not allowed")
    check.text(
        "label",
        max_length=100,
        required=True,
        message="Label must be between 1 and 100 characters",
    )
    check.text(
        "value",
        max_length=500,
        required=True,
        message="Value must be between 1 and 500 characters",
    )
    check.text(
        "icon",
        max_length=50,
        message="Icon name cannot exceed 50 characters",
        allow_blank=True,
    )
    return check.result


def validate_message(data: Mapping[str, Any]) -> ValidationResult:
    check = _Checker(data, partial=False)
    check.text(
        "name",
        max_length=100,
        required=True,
        message="Name must be between 1 and 100 characters",
    )
    check.email("email", required=True)
    check.text(
        "subject",
        max_length=200,
        required=True,
        message="Subject must be between 1 and 200 characters",
    )
    check.text(
        "message",
        max_length=2000,
        required=True,
        message="Message must be between 1 and 2000 characters",
    )
    check.text("phone", max_length=20, message="Phone number cannot exceed 20 characters")
    check.choice("category", MESSAGE_CATEGORIES, "Invalid category")
    check.choice("source", MESSAGE_SOURCES, "Invalid source")
    return check.result


def validate_message_update(data: Mapping[str, Any]) -> ValidationResult:
    check = _Checker(data, partial=True)
    check.flag("isRead")
    check.flag("replied")
    check.choice("priority", MESSAGE_PRIORITIES, "Invalid priority")
    check.choice("category", MESSAGE_CATEGORIES, "Invalid category")
    return check.result


def validate_note(data: Mapping[str, Any]) -> ValidationResult:
    check = _Checker(data, partial=False)
    check.text(
        "content",
        max_length=500,
        required=True,
        message="Note must be between 1 and 500 characters",
    )
    return check.result
