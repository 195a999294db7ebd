"""Data models for extracted action items."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

DEFAULT_TASK = "Unnamed action"
DEFAULT_CONFIDENCE = 0.8
REVIEW_THRESHOLD = 0.7


class Priority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Status(StrEnum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


@dataclass
class ActionItemCandidate:
    """A normalized action item, ready to be persisted."""

    task: str
    owner: str | None = None
    owner_email: str | None = None
    deadline: datetime | None = None
    priority: Priority = Priority.MEDIUM
    status: Status = Status.OPEN
    confidence: float = DEFAULT_CONFIDENCE
    notes: str | None = None

    @property
    def needs_review(self) -> bool:
        return self.confidence < REVIEW_THRESHOLD

    def to_row(self, meeting_id: str, user_id: str) -> dict[str, Any]:
        """Project onto an ``action_items`` insert row."""
        return {
            "meeting_id": meeting_id,
            "user_id": user_id,
            "action_item": self.task,
            "owner": self.owner,
            "owner_email": self.owner_email,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "priority": self.priority.value,
            "status": self.status.value,
            "confidence": self.confidence,
            "notes": self.notes,
        }


def _text(raw: dict[str, Any], *keys: str) -> str | None:
    """First non-blank string value among ``keys``."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_priority(value: Any) -> Priority:
    """Map a loosely-typed priority onto the enum; unknown values become Medium."""
    if isinstance(value, str):
        for level in Priority:
            if value.strip().lower() == level.value.lower():
                return level
    return Priority.MEDIUM


def parse_status(value: Any) -> Status | None:
    if isinstance(value, str):
        for status in Status:
            if value.strip().lower() == status.value.lower():
                return status
    return None


def parse_confidence(value: Any) -> float:
    """Numeric confidence clamped to [0, 1]; anything else gets the default."""
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(number):
        return DEFAULT_CONFIDENCE
    return min(max(number, 0.0), 1.0)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or datetime. Naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def normalize_candidate(raw: Any) -> ActionItemCandidate:
    """Project an arbitrary model-produced value onto an ActionItemCandidate.

    Never raises. Accepts the camelCase keys the prompt asks for as well as the
    snake_case column names. Status is always forced to Open.
    """
    if not isinstance(raw, dict):
        raw = {"actionItem": raw} if isinstance(raw, str) else {}

    return ActionItemCandidate(
        task=_text(raw, "actionItem", "action_item", "task") or DEFAULT_TASK,
        owner=_text(raw, "owner", "assignee"),
        owner_email=_text(raw, "ownerEmail", "owner_email", "email"),
        deadline=parse_timestamp(raw.get("deadline", raw.get("due_date"))),
        priority=parse_priority(raw.get("priority")),
        status=Status.OPEN,
        confidence=parse_confidence(raw.get("confidence")),
        notes=_text(raw, "notes", "context"),
    )
