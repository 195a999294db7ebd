"""Pydantic request/response schemas for the MeetAct API.

Wire names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from src.extraction.models import Priority, Status


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractRequest(CamelModel):
    """Body of /api/extract-actions. Presence is checked in the route (400, not 422)."""

    transcript: str | None = None
    meeting_id: str | None = None
    meeting_date: datetime | None = None


class ExtractResponse(CamelModel):
    success: bool = True
    action_items: list[dict[str, Any]]
    count: int


class TranscribeRequest(CamelModel):
    audio_url: str | None = None
    file_path: str | None = None
    audio_base64: str | None = None
    mime_type: str | None = None
    file_name: str | None = None
    meeting_id: str | None = None


class CandidateResponse(CamelModel):
    action_item: str
    owner: str | None = None
    owner_email: str | None = None
    deadline: datetime | None = None
    priority: Priority = Priority.MEDIUM
    status: Status = Status.OPEN
    confidence: float = 0.8
    notes: str | None = None
    needs_review: bool = False


class TranscribeResponse(CamelModel):
    transcript: str
    meeting_summary: str | None = None
    action_items: list[CandidateResponse] = []
    meeting_updated: bool = False
    meeting_id: str | None = None
    model: str


class MeetingCreate(CamelModel):
    title: str = "Untitled Meeting"
    transcript: str | None = None
    audio_url: str | None = None
    meeting_date: datetime | None = None


class MeetingSummary(CamelModel):
    """Summary representation of a meeting for list views."""

    id: str
    title: str
    meeting_date: str | None = None
    processed_at: str | None = None
    action_items_count: int = 0
    completed_count: int = 0
    open_count: int = 0


class MeetingDetail(CamelModel):
    id: str
    title: str
    meeting_date: str | None = None
    transcript: str | None = None
    audio_url: str | None = None
    processed_at: str | None = None
    action_items: list[dict[str, Any]] = []


class ActionItemUpdate(CamelModel):
    """Inline edit of a single action item; only the fields sent are written."""

    action_item: str | None = None
    owner: str | None = None
    owner_email: str | None = None
    deadline: datetime | None = None
    priority: Priority | None = None
    status: Status | None = None
    notes: str | None = None


class JiraConnectRequest(CamelModel):
    domain: str
    email: str
    api_token: str
    project_key: str


class PublishItemRequest(CamelModel):
    id: str
    summary: str
    description: str | None = None
    assignee: str | None = None
    due_date: str | None = None
    priority: str | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def _ignore_non_text_priority(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class PublishRequest(CamelModel):
    action_items: list[PublishItemRequest] | None = None


class CreatedIssueResponse(CamelModel):
    id: str
    key: str
    summary: str


class PublishErrorResponse(CamelModel):
    id: str
    error: str


class PublishResponse(CamelModel):
    success: bool = True
    created: list[CreatedIssueResponse]
    errors: list[PublishErrorResponse] | None = None


class StatsResponse(CamelModel):
    actions_completed: int
    open_items: int
    time_saved_minutes: int
    time_saved_label: str
