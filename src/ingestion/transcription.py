"""Gemini multimodal transcription: audio in, transcript + summary + action items out."""

from __future__ import annotations

import logging
from typing import Any

import google.generativeai as genai

from src.config import settings
from src.errors import TranscriptionError
from src.extraction.models import normalize_candidate
from src.extraction.parsing import parse_json_reply
from src.ingestion.models import AudioPayload, TranscriptionResult

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROMPT = """\
Transcribe this meeting recording. Prefix every utterance with its timestamp \
(mm:ss) and a speaker label ("Speaker 1", or the speaker's name when it is said).
Then write a short summary of the meeting and list its action items.

Return a JSON object with exactly these fields:
- transcript: the full transcript as a string, one utterance per line, \
formatted "[mm:ss] Speaker: text"
- summary: a 2-4 sentence summary of the meeting
- actionItems: list of {actionItem, owner, ownerEmail, deadline, priority, \
confidence, notes} where priority is "High", "Medium" or "Low" and confidence \
is a number between 0 and 1

Return only JSON."""

_FALLBACK_ERROR_MARKERS = ("not found", "unsupported", "permission denied")


def should_fall_back(exc: Exception) -> bool:
    """True when the error says the model id itself is unknown or not allowed."""
    message = str(exc).lower()
    return "model" in message and any(marker in message for marker in _FALLBACK_ERROR_MARKERS)


def _format_utterances(utterances: list[Any]) -> str:
    lines: list[str] = []
    for u in utterances:
        if isinstance(u, str):
            lines.append(u)
            continue
        if not isinstance(u, dict) or not isinstance(u.get("text"), str):
            continue
        prefix = f"[{u['timestamp']}] " if u.get("timestamp") else ""
        speaker = f"{u['speaker']}: " if u.get("speaker") else ""
        lines.append(f"{prefix}{speaker}{u['text']}")
    return "\n".join(lines)


def parse_transcription_reply(text: str, model: str = "") -> TranscriptionResult:
    """Project a model reply onto a TranscriptionResult.

    An unparseable reply keeps the raw text as the transcript with no summary
    and no action items. An empty transcript raises.

    Raises:
        TranscriptionError: No transcript text could be recovered.
    """
    try:
        data = parse_json_reply(text)
    except ValueError:
        logger.warning("Transcription reply is not JSON; using raw text as transcript")
        data = None

    if isinstance(data, dict):
        raw_transcript = data.get("transcript")
        if isinstance(raw_transcript, list):
            transcript = _format_utterances(raw_transcript)
        elif isinstance(raw_transcript, str):
            transcript = raw_transcript
        else:
            transcript = ""
        summary = data.get("summary", data.get("meetingSummary"))
        raw_items = data.get("actionItems", data.get("action_items"))
        result = TranscriptionResult(
            transcript=transcript.strip(),
            meeting_summary=summary.strip() if isinstance(summary, str) and summary.strip() else None,
            action_items=[normalize_candidate(i) for i in raw_items]
            if isinstance(raw_items, list)
            else [],
            model=model,
        )
    else:
        result = TranscriptionResult(transcript=text.strip(), model=model)

    if not result.transcript:
        raise TranscriptionError("Empty transcript produced")
    return result


def _generate(model_name: str, payload: AudioPayload) -> str:
    model = genai.GenerativeModel(model_name)
    response = model.generate_content(
        [
            TRANSCRIPTION_PROMPT,
            {"mime_type": payload.media_type, "data": payload.data},
        ],
        generation_config={"response_mime_type": "application/json"},
        request_options={"timeout": settings.http_timeout_seconds},
    )
    return str(response.text)


def transcribe_audio(payload: AudioPayload) -> TranscriptionResult:
    """Transcribe an audio payload with Gemini.

    Tries ``settings.transcription_model`` first and retries once with
    ``settings.transcription_fallback_model`` only when the primary model id is
    rejected as unknown, unsupported or not permitted.

    Raises:
        TranscriptionError: Missing API key, model failure or empty transcript.
    """
    if not settings.google_api_key:
        raise TranscriptionError("GOOGLE_API_KEY is not configured")

    genai.configure(api_key=settings.google_api_key)  # type: ignore[attr-defined]

    model_name = settings.transcription_model
    try:
        text = _generate(model_name, payload)
    except Exception as exc:
        if not should_fall_back(exc):
            raise TranscriptionError(f"Transcription failed: {exc}") from exc
        logger.warning(
            "Model %s rejected (%s); retrying with %s",
            model_name,
            exc,
            settings.transcription_fallback_model,
        )
        model_name = settings.transcription_fallback_model
        try:
            text = _generate(model_name, payload)
        except Exception as retry_exc:
            raise TranscriptionError(f"Transcription failed: {retry_exc}") from retry_exc

    result = parse_transcription_reply(text, model=model_name)
    logger.info(
        "Transcribed %s with %s: %d chars, %d action items",
        payload.display_name,
        model_name,
        len(result.transcript),
        len(result.action_items),
    )
    return result
