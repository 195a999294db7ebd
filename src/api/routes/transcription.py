"""Transcription endpoint: audio reference -> transcript, summary and suggested items."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.auth import Auth
from src.api.models import CandidateResponse, TranscribeRequest, TranscribeResponse
from src.ingestion.models import AudioSource
from src.ingestion.pipeline import transcribe_and_reconcile

router = APIRouter()


@router.post("/api/transcribe", response_model=TranscribeResponse)
async def transcribe(request: TranscribeRequest, auth: Auth) -> TranscribeResponse:
    """Transcribe a recording given as a URL, a storage path or inline base64.

    Payloads over the size limit answer 413 before any model call. The
    returned action items are suggestions only and are not stored.
    """
    source = AudioSource(
        audio_base64=request.audio_base64,
        file_path=request.file_path,
        audio_url=request.audio_url,
        mime_type=request.mime_type,
        file_name=request.file_name,
    )
    if source.is_empty:
        raise HTTPException(status_code=400, detail="Missing audioUrl, filePath or audioBase64")

    run = await transcribe_and_reconcile(auth.client, auth.user_id, source, request.meeting_id)
    result = run.result

    return TranscribeResponse(
        transcript=result.transcript,
        meeting_summary=result.meeting_summary,
        action_items=[
            CandidateResponse(
                action_item=item.task,
                owner=item.owner,
                owner_email=item.owner_email,
                deadline=item.deadline,
                priority=item.priority,
                status=item.status,
                confidence=item.confidence,
                notes=item.notes,
                needs_review=item.needs_review,
            )
            for item in result.action_items
        ],
        meeting_updated=run.meeting_updated,
        meeting_id=run.meeting_id,
        model=result.model,
    )
