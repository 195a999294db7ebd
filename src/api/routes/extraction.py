"""Extraction endpoints: transcript text -> persisted action items."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.auth import Auth
from src.api.models import ExtractRequest, ExtractResponse
from src.ingestion.pipeline import extract_and_store, process_meeting

router = APIRouter()


@router.post("/api/extract-actions", response_model=ExtractResponse)
async def extract_actions(request: ExtractRequest, auth: Auth) -> ExtractResponse:
    """Extract action items from a transcript and store them on the meeting.

    An unparseable model reply is not an error: the response then reports
    zero items.
    """
    if not request.transcript or not request.transcript.strip() or not request.meeting_id:
        raise HTTPException(status_code=400, detail="Missing transcript or meetingId")

    rows = await extract_and_store(
        auth.client,
        auth.user_id,
        request.meeting_id,
        request.transcript,
        request.meeting_date,
    )
    return ExtractResponse(action_items=rows, count=len(rows))


@router.post("/api/meetings/{meeting_id}/process", response_model=ExtractResponse)
async def process(meeting_id: str, auth: Auth) -> ExtractResponse:
    """Extract from the meeting's stored transcript and mark it processed."""
    rows = await process_meeting(auth.client, auth.user_id, meeting_id)
    return ExtractResponse(action_items=rows, count=len(rows))
