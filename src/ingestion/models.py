"""Data models for the audio ingestion path."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.extraction.models import ActionItemCandidate


@dataclass
class AudioSource:
    """One of the accepted ways of pointing at a recording.

    At least one of ``audio_base64``, ``file_path`` or ``audio_url`` must be set;
    an inline payload wins over a storage path, which wins over a URL.
    """

    audio_base64: str | None = None
    file_path: str | None = None
    audio_url: str | None = None
    mime_type: str | None = None
    file_name: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.audio_base64 or self.file_path or self.audio_url)


@dataclass
class AudioPayload:
    """Resolved audio bytes plus the metadata the transcriber needs."""

    data: bytes
    media_type: str
    display_name: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class TranscriptionResult:
    """Structured reply of the multimodal transcription model."""

    transcript: str
    meeting_summary: str | None = None
    action_items: list[ActionItemCandidate] = field(default_factory=list)
    model: str = ""
