"""End-to-end pipeline runs: (audio ->) transcript -> action items -> store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx
from supabase import Client

from src.errors import MissingInputError
from src.extraction.extractor import extract_action_items
from src.extraction.models import parse_timestamp
from src.ingestion.audio import resolve_audio
from src.ingestion.models import AudioSource, TranscriptionResult
from src.ingestion.storage import (
    get_owned_meeting,
    mark_latest_meeting_for_audio,
    mark_meeting_processed,
    store_action_items,
)
from src.ingestion.transcription import transcribe_audio

logger = logging.getLogger(__name__)


@dataclass
class TranscriptionRun:
    result: TranscriptionResult
    meeting_id: str | None = None

    @property
    def meeting_updated(self) -> bool:
        return self.meeting_id is not None


async def extract_and_store(
    client: Client,
    user_id: str,
    meeting_id: str,
    transcript: str,
    meeting_date: datetime | None = None,
) -> list[dict[str, Any]]:
    """Extract action items from ``transcript`` and persist them for the meeting.

    The owner check runs before the model is called so a foreign meeting id
    never costs an inference request.

    Returns:
        The persisted rows, including generated ids.
    """
    await asyncio.to_thread(get_owned_meeting, client, meeting_id, user_id)
    items = await asyncio.to_thread(extract_action_items, transcript, meeting_date)
    rows = await asyncio.to_thread(store_action_items, client, meeting_id, user_id, items)
    logger.info("Extracted %d action items for meeting %s", len(rows), meeting_id)
    return rows


async def process_meeting(client: Client, user_id: str, meeting_id: str) -> list[dict[str, Any]]:
    """Run extraction over a stored meeting's transcript, then mark it processed."""
    meeting = await asyncio.to_thread(get_owned_meeting, client, meeting_id, user_id)
    transcript = meeting.get("transcript") or ""
    if not str(transcript).strip():
        raise MissingInputError("Meeting has no transcript to extract from")

    rows = await extract_and_store(
        client,
        user_id,
        meeting_id,
        str(transcript),
        parse_timestamp(meeting.get("meeting_date")),
    )
    await asyncio.to_thread(mark_meeting_processed, client, meeting_id, str(transcript))
    return rows


async def transcribe_and_reconcile(
    client: Client,
    user_id: str,
    source: AudioSource,
    meeting_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TranscriptionRun:
    """Resolve audio, transcribe it and write the transcript back to its meeting.

    With ``meeting_id`` the meeting is checked for ownership before any audio
    is fetched. Without it, the newest meeting carrying the same audio URL is
    updated, if any.
    """
    if meeting_id:
        await asyncio.to_thread(get_owned_meeting, client, meeting_id, user_id)

    payload = await resolve_audio(source, storage_client=client, transport=transport)
    result = await asyncio.to_thread(transcribe_audio, payload)

    updated_id: str | None = None
    if meeting_id:
        await asyncio.to_thread(mark_meeting_processed, client, meeting_id, result.transcript)
        updated_id = meeting_id
    elif source.audio_url:
        updated_id = await asyncio.to_thread(
            mark_latest_meeting_for_audio, client, user_id, source.audio_url, result.transcript
        )

    return TranscriptionRun(result=result, meeting_id=updated_id)
