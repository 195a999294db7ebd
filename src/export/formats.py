"""CSV and JSON flattening of action items."""

from __future__ import annotations

import csv
import io
import json
import re
from collections.abc import Iterable
from typing import Any

CSV_HEADERS = ["Action Item", "Owner", "Email", "Deadline", "Priority", "Status", "Notes"]

# export key -> action_items column
JSON_FIELDS = {
    "actionItem": "action_item",
    "owner": "owner",
    "ownerEmail": "owner_email",
    "deadline": "deadline",
    "priority": "priority",
    "status": "status",
    "notes": "notes",
}


def select_items(items: list[dict[str, Any]], ids: Iterable[str] | None) -> list[dict[str, Any]]:
    """The selected rows, or every row when nothing is selected."""
    wanted = {str(i) for i in ids or []}
    if not wanted:
        return list(items)
    return [item for item in items if str(item.get("id")) in wanted]


def export_filename(title: str, extension: str) -> str:
    stem = re.sub(r"\s+", "_", title.strip()) or "meeting"
    return f"{stem}_actions.{extension}"


def to_csv(items: list[dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in items:
        writer.writerow([item.get(column) or "" for column in JSON_FIELDS.values()])
    return buf.getvalue()


def to_json_records(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: item.get(column) for key, column in JSON_FIELDS.items()} for item in items]


def to_json(items: list[dict[str, Any]]) -> str:
    return json.dumps(to_json_records(items), indent=2)


def from_json(text: str) -> list[dict[str, Any]]:
    """Read an export back into ``action_items`` column names."""
    records = json.loads(text)
    if not isinstance(records, list):
        raise ValueError("Expected a JSON array of action items")
    return [
        {column: record.get(key) for key, column in JSON_FIELDS.items()}
        for record in records
        if isinstance(record, dict)
    ]
