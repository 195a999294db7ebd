"""Resolve an audio reference (inline, storage path or URL) into raw bytes."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import posixpath
import re
from urllib.parse import unquote, urlparse

import httpx
from supabase import Client

from src.config import settings
from src.errors import AudioFetchError, InvalidAudioError, PayloadTooLargeError
from src.ingestion.models import AudioPayload, AudioSource

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "meeting-audio"
DEFAULT_MEDIA_TYPE = "audio/mpeg"

EXTENSION_MEDIA_TYPES = {
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}

_DATA_URI = re.compile(r"^data:(?P<type>[^;,]*)(?:;[^,]*)?,", re.IGNORECASE)


def _last_segment(path: str) -> str | None:
    segment = posixpath.basename(path.rstrip("/"))
    return unquote(segment) or None


def resolve_display_name(source: AudioSource) -> str:
    """Explicit name, then storage path, then URL path, then a fixed fallback."""
    if source.file_name:
        return source.file_name
    if source.file_path:
        name = _last_segment(source.file_path)
        if name:
            return name
    if source.audio_url:
        name = _last_segment(urlparse(source.audio_url).path)
        if name:
            return name
    return DEFAULT_DISPLAY_NAME


def infer_media_type(name: str) -> str | None:
    ext = posixpath.splitext(name.lower())[1]
    return EXTENSION_MEDIA_TYPES.get(ext)


def split_data_uri(value: str) -> tuple[str | None, str]:
    """Return ``(embedded_media_type, base64_body)`` for a possible data URI."""
    match = _DATA_URI.match(value)
    if not match:
        return None, value
    return match.group("type") or None, value[match.end() :]


def decode_base64_audio(value: str) -> bytes:
    try:
        return base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidAudioError("Audio payload is not valid base64") from exc


def check_size(data: bytes, limit: int | None = None) -> None:
    """Reject payloads larger than ``limit`` bytes (exactly ``limit`` is accepted)."""
    limit = settings.max_audio_bytes if limit is None else limit
    if len(data) > limit:
        raise PayloadTooLargeError(len(data), limit)


def _download_from_storage(client: Client, path: str) -> bytes:
    try:
        return client.storage.from_(settings.audio_bucket).download(path)
    except Exception as exc:
        raise AudioFetchError(f"Failed to download audio from storage: {exc}") from exc


async def _download_from_url(url: str, transport: httpx.AsyncBaseTransport | None) -> bytes:
    try:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout_seconds,
            follow_redirects=True,
            transport=transport,
        ) as http:
            response = await http.get(url)
    except httpx.HTTPError as exc:
        raise AudioFetchError(f"Failed to fetch audio: {exc}") from exc

    if not response.is_success:
        raise AudioFetchError(f"Failed to fetch audio: HTTP {response.status_code}")
    return response.content


async def resolve_audio(
    source: AudioSource,
    *,
    storage_client: Client | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    max_bytes: int | None = None,
) -> AudioPayload:
    """Turn an AudioSource into an AudioPayload.

    Raises:
        InvalidAudioError: Nothing to resolve, or malformed base64.
        AudioFetchError: Storage download or HTTP fetch failed.
        PayloadTooLargeError: Decoded payload exceeds ``max_bytes``.
    """
    if source.is_empty:
        raise InvalidAudioError("Missing audioUrl, filePath or audioBase64")

    display_name = resolve_display_name(source)
    embedded_type: str | None = None

    if source.audio_base64:
        embedded_type, body = split_data_uri(source.audio_base64.strip())
        data = decode_base64_audio(body)
    elif source.file_path:
        if storage_client is None:
            raise AudioFetchError("No storage client available for filePath")
        data = await asyncio.to_thread(_download_from_storage, storage_client, source.file_path)
    else:
        data = await _download_from_url(str(source.audio_url), transport)

    check_size(data, max_bytes)

    media_type = (
        source.mime_type
        or embedded_type
        or infer_media_type(display_name)
        or DEFAULT_MEDIA_TYPE
    )
    logger.info("Resolved audio %s (%s, %d bytes)", display_name, media_type, len(data))
    return AudioPayload(data=data, media_type=media_type, display_name=display_name)
