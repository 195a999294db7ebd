"""Action item endpoints backing the editable table: list, edit, export, reminders."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, HTTPException, Query, Response

from src.api.auth import Auth
from src.api.models import ActionItemUpdate
from src.export.formats import export_filename, select_items, to_csv, to_json
from src.ingestion.storage import (
    get_owned_meeting,
    list_action_items,
    list_reminders,
    update_action_item,
)

router = APIRouter()

# API field -> action_items column
_COLUMNS = {
    "action_item": "action_item",
    "owner": "owner",
    "owner_email": "owner_email",
    "deadline": "deadline",
    "priority": "priority",
    "status": "status",
    "notes": "notes",
}


@router.get("/api/meetings/{meeting_id}/action-items")
def list_items(meeting_id: str, auth: Auth) -> list[dict[str, Any]]:
    """Action items of a meeting, oldest first."""
    get_owned_meeting(auth.client, meeting_id, auth.user_id)
    return list_action_items(auth.client, meeting_id)


@router.patch("/api/action-items/{item_id}")
def update_item(item_id: str, request: ActionItemUpdate, auth: Auth) -> dict[str, Any]:
    """Persist one inline edit. Any field may change at any time; last write wins."""
    changes = request.model_dump(exclude_unset=True, mode="json")
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "action_item" in changes and not (changes["action_item"] or "").strip():
        raise HTTPException(status_code=400, detail="Action item text cannot be empty")

    updates = {_COLUMNS[name]: value for name, value in changes.items()}
    return update_action_item(auth.client, item_id, updates)


@router.get("/api/meetings/{meeting_id}/export")
def export_items(
    meeting_id: str,
    auth: Auth,
    format: Literal["csv", "json"] = "csv",
    ids: Annotated[list[str] | None, Query()] = None,
) -> Response:
    """Download the meeting's action items, or just the selected ``ids``."""
    meeting = get_owned_meeting(auth.client, meeting_id, auth.user_id)
    items = select_items(list_action_items(auth.client, meeting_id), ids)

    if format == "json":
        content, media_type = to_json(items), "application/json"
    else:
        content, media_type = to_csv(items), "text/csv; charset=utf-8"

    filename = export_filename(str(meeting.get("title") or ""), format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/action-items/{item_id}/reminders")
def reminders(item_id: str, auth: Auth) -> list[dict[str, Any]]:
    return list_reminders(auth.client, item_id)
