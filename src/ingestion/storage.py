"""Supabase storage helpers for meetings and action items."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, cast

from supabase import Client, ClientOptions, create_client

from src.config import settings
from src.errors import ActionItemNotFoundError, MeetingAccessError, MeetingNotFoundError
from src.extraction.models import ActionItemCandidate

logger = logging.getLogger(__name__)


def get_supabase_client(access_token: str | None = None) -> Client:
    """Create a Supabase client from environment variables.

    When ``access_token`` is given it is forwarded on every request so the
    row-level policies see the calling user.
    """
    options = None
    if access_token:
        options = ClientOptions(headers={"Authorization": f"Bearer {access_token}"})
    return create_client(
        settings.supabase_url,
        settings.supabase_key,
        options=options,
    )


def _rows(result: Any) -> list[dict[str, Any]]:
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    return cast(list[dict[str, Any]], result.data or [])


def _now() -> str:
    return datetime.now(UTC).isoformat()


def create_meeting(
    client: Client,
    user_id: str,
    title: str,
    transcript: str | None = None,
    audio_url: str | None = None,
    meeting_date: datetime | None = None,
) -> dict[str, Any]:
    """Insert a meeting row and return it."""
    result = (
        client.table("meetings")
        .insert(
            {
                "user_id": user_id,
                "title": title,
                "transcript": transcript,
                "audio_url": audio_url,
                "meeting_date": (meeting_date or datetime.now(UTC)).isoformat(),
            }
        )
        .execute()
    )
    return _rows(result)[0]


def get_meeting(client: Client, meeting_id: str) -> dict[str, Any]:
    result = client.table("meetings").select("*").eq("id", meeting_id).execute()
    rows = _rows(result)
    if not rows:
        raise MeetingNotFoundError("Meeting not found")
    return rows[0]


def get_owned_meeting(client: Client, meeting_id: str, user_id: str) -> dict[str, Any]:
    """Fetch a meeting and check the acting user owns it.

    Raises:
        MeetingNotFoundError: No visible meeting with that id.
        MeetingAccessError: The meeting belongs to someone else.
    """
    meeting = get_meeting(client, meeting_id)
    if str(meeting.get("user_id")) != str(user_id):
        raise MeetingAccessError("Meeting does not belong to the current user")
    return meeting


def list_meetings(client: Client, user_id: str) -> list[dict[str, Any]]:
    """Meetings newest-first, each with its action items' id and status embedded."""
    result = (
        client.table("meetings")
        .select("id, title, meeting_date, processed_at, created_at, action_items(id, status)")
        .eq("user_id", user_id)
        .order("meeting_date", desc=True)
        .execute()
    )
    return _rows(result)


def delete_meeting(client: Client, meeting_id: str) -> bool:
    """Delete a meeting (action items cascade). Returns False if nothing was deleted."""
    result = client.table("meetings").delete().eq("id", meeting_id).execute()
    return bool(_rows(result))


def store_action_items(
    client: Client,
    meeting_id: str,
    user_id: str,
    items: list[ActionItemCandidate],
) -> list[dict[str, Any]]:
    """Insert all items in one call and return the persisted rows.

    The insert is all-or-nothing: a failing call raises and nothing is
    considered stored.
    """
    if not items:
        return []

    rows = [item.to_row(meeting_id, user_id) for item in items]
    result = client.table("action_items").insert(rows).execute()
    stored = _rows(result)
    logger.info("Stored %d action items for meeting %s", len(stored), meeting_id)
    return stored


def list_action_items(client: Client, meeting_id: str) -> list[dict[str, Any]]:
    """Action items of a meeting in ascending creation order."""
    result = (
        client.table("action_items")
        .select("*")
        .eq("meeting_id", meeting_id)
        .order("created_at")
        .execute()
    )
    return _rows(result)


def list_user_action_statuses(client: Client, user_id: str) -> list[str]:
    result = client.table("action_items").select("status").eq("user_id", user_id).execute()
    return [str(r.get("status")) for r in _rows(result)]


def update_action_item(client: Client, item_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    """Apply a partial update; last write wins."""
    result = client.table("action_items").update(updates).eq("id", item_id).execute()
    rows = _rows(result)
    if not rows:
        raise ActionItemNotFoundError("Action item not found")
    return rows[0]


def set_issue_key(client: Client, item_id: str, issue_key: str) -> None:
    client.table("action_items").update({"jira_issue_key": issue_key}).eq("id", item_id).execute()


def list_reminders(client: Client, item_id: str) -> list[dict[str, Any]]:
    result = (
        client.table("reminders_log")
        .select("*")
        .eq("action_item_id", item_id)
        .order("sent_at", desc=True)
        .execute()
    )
    return _rows(result)


def mark_meeting_processed(client: Client, meeting_id: str, transcript: str) -> None:
    """Store the resolved transcript and stamp ``processed_at``."""
    if not transcript.strip():
        raise ValueError("processed_at requires a transcript")
    client.table("meetings").update(
        {"transcript": transcript, "processed_at": _now()}
    ).eq("id", meeting_id).execute()


def mark_latest_meeting_for_audio(
    client: Client,
    user_id: str,
    audio_url: str,
    transcript: str,
) -> str | None:
    """Update the most recently created meeting of ``user_id`` with ``audio_url``.

    Returns the updated meeting id, or None when no meeting matched.
    """
    result = (
        client.table("meetings")
        .select("id")
        .eq("user_id", user_id)
        .eq("audio_url", audio_url)
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    rows = _rows(result)
    if not rows:
        return None
    meeting_id = str(rows[0]["id"])
    mark_meeting_processed(client, meeting_id, transcript)
    return meeting_id
