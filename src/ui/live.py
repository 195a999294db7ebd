"""Apply row change events to the in-memory action item list of a meeting.

Events follow the Postgres changes payload shape:
``{"eventType": "INSERT" | "UPDATE" | "DELETE", "new": {...}, "old": {...}}``.
They are applied strictly in arrival order with no reordering or dedupe.

The Streamlit client holds no push channel. It re-reads the table every 15 s
and ``snapshot_events`` turns the difference into these events, so changes
made elsewhere show up on the next poll rather than immediately.
"""

from __future__ import annotations

from typing import Any

Event = dict[str, Any]


def apply_change_event(items: list[dict[str, Any]], event: Event) -> list[dict[str, Any]]:
    kind = str(event.get("eventType", "")).upper()
    new = event.get("new") or {}
    old = event.get("old") or {}

    if kind == "INSERT":
        return [*items, new]
    if kind == "UPDATE":
        return [new if item.get("id") == new.get("id") else item for item in items]
    if kind == "DELETE":
        return [item for item in items if item.get("id") != old.get("id")]
    return items


def apply_events(items: list[dict[str, Any]], events: list[Event]) -> list[dict[str, Any]]:
    for event in events:
        items = apply_change_event(items, event)
    return items


def snapshot_events(previous: list[dict[str, Any]], current: list[dict[str, Any]]) -> list[Event]:
    """Change events that turn ``previous`` into ``current``.

    Used when the client polls instead of holding a push channel open.
    """
    before = {item.get("id"): item for item in previous}
    after_ids = {item.get("id") for item in current}

    events: list[Event] = [
        {"eventType": "DELETE", "old": item} for item in previous if item.get("id") not in after_ids
    ]
    for item in current:
        old = before.get(item.get("id"))
        if old is None:
            events.append({"eventType": "INSERT", "new": item})
        elif old != item:
            events.append({"eventType": "UPDATE", "new": item, "old": old})
    return events
