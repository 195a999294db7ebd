"""Meeting endpoints: create, list, detail, delete and dashboard stats."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Response

from src.api.auth import Auth
from src.api.models import MeetingCreate, MeetingDetail, MeetingSummary, StatsResponse
from src.extraction.models import Status
from src.ingestion.storage import (
    create_meeting,
    delete_meeting,
    get_owned_meeting,
    list_action_items,
    list_meetings,
    list_user_action_statuses,
)

router = APIRouter()

MINUTES_SAVED_PER_MEETING = 15


def format_time_saved(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours} hrs"


def _detail(meeting: dict[str, Any], items: list[dict[str, Any]]) -> MeetingDetail:
    return MeetingDetail(
        id=str(meeting["id"]),
        title=meeting["title"],
        meeting_date=meeting.get("meeting_date"),
        transcript=meeting.get("transcript"),
        audio_url=meeting.get("audio_url"),
        processed_at=meeting.get("processed_at"),
        action_items=items,
    )


@router.post("/api/meetings", response_model=MeetingDetail, status_code=201)
def create(request: MeetingCreate, auth: Auth) -> MeetingDetail:
    meeting = create_meeting(
        auth.client,
        auth.user_id,
        request.title.strip() or "Untitled Meeting",
        transcript=request.transcript,
        audio_url=request.audio_url,
        meeting_date=request.meeting_date,
    )
    return _detail(meeting, [])


@router.get("/api/meetings", response_model=list[MeetingSummary])
def list_all(auth: Auth) -> list[MeetingSummary]:
    """List the caller's meetings, newest meeting date first, with item counts."""
    meetings: list[MeetingSummary] = []
    for m in list_meetings(auth.client, auth.user_id):
        items = m.get("action_items") or []
        completed = sum(1 for a in items if a.get("status") == Status.DONE)
        meetings.append(
            MeetingSummary(
                id=str(m["id"]),
                title=m["title"],
                meeting_date=m.get("meeting_date"),
                processed_at=m.get("processed_at"),
                action_items_count=len(items),
                completed_count=completed,
                open_count=len(items) - completed,
            )
        )
    return meetings


@router.get("/api/meetings/{meeting_id}", response_model=MeetingDetail)
def detail(meeting_id: str, auth: Auth) -> MeetingDetail:
    meeting = get_owned_meeting(auth.client, meeting_id, auth.user_id)
    return _detail(meeting, list_action_items(auth.client, meeting_id))


@router.delete("/api/meetings/{meeting_id}", status_code=204)
def delete(meeting_id: str, auth: Auth) -> Response:
    """Delete a meeting; its action items go with it."""
    if not delete_meeting(auth.client, meeting_id):
        raise HTTPException(status_code=404, detail="Meeting not found")
    return Response(status_code=204)


@router.get("/api/stats", response_model=StatsResponse)
def stats(auth: Auth) -> StatsResponse:
    statuses = list_user_action_statuses(auth.client, auth.user_id)
    completed = sum(1 for s in statuses if s == Status.DONE)
    minutes = len(list_meetings(auth.client, auth.user_id)) * MINUTES_SAVED_PER_MEETING
    return StatsResponse(
        actions_completed=completed,
        open_items=len(statuses) - completed,
        time_saved_minutes=minutes,
        time_saved_label=format_time_saved(minutes),
    )
