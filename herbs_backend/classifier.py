"""
Priority rules for inbound contact messages.
"""

from __future__ import annotations

from typing import Optional

PRIORITY_CEO = "CEO"
PRIORITY_SALES_MANAGER = "Sales Manager"
PRIORITY_HERBS = "Herbs Priority"
PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"

MESSAGE_PRIORITIES = (
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    PRIORITY_HIGH,
    PRIORITY_CEO,
    PRIORITY_SALES_MANAGER,
    PRIORITY_HERBS,
)

CEO_KEYWORDS = ("ceo", "urgent", "important")
SALES_KEYWORDS = ("sales manager",)
HERBS_KEYWORDS = ("herb", "natural")


def classify_priority(
    subject: str, message: str, category: Optional[str] = None
) -> str:
    """
    Derive a priority label for a new message. Rules are checked in order
    and the first match wins; keyword checks are case-insensitive substring
    matches over the subject and body.
    """
    text = f"{subject or ''} {message or ''}".lower()

    if any(keyword in text for keyword in CEO_KEYWORDS):
        return PRIORITY_CEO
    if category == "sales" or any(keyword in text for keyword in SALES_KEYWORDS):
        return PRIORITY_SALES_MANAGER
    if category == "herbs" or any(keyword in text for keyword in HERBS_KEYWORDS):
        return PRIORITY_HERBS
    if category == "complaint":
        return PRIORITY_HIGH
    return PRIORITY_MEDIUM
