"""MeetAct -- Streamlit UI.

Multi-page client: sign in, upload a meeting, review and edit its action
items, export them and push them to Jira.
"""

from __future__ import annotations

from typing import Any

import streamlit as st

from src.export.formats import export_filename, select_items, to_csv, to_json
from src.extraction.models import REVIEW_THRESHOLD, Priority, Status
from src.ui import api_client
from src.ui.live import apply_events, snapshot_events
from src.ui.session import SessionState

EDITABLE_FIELDS = ["action_item", "owner", "owner_email", "deadline", "priority", "status", "notes"]

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(page_title="MeetAct", layout="wide")

session = SessionState.load(st.session_state)

# ---------------------------------------------------------------------------
# Sign in
# ---------------------------------------------------------------------------
if not session.is_authenticated:
    st.title("MeetAct")
    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        signed_in = api_client.sign_in(email, password)
        if signed_in:
            SessionState(cache_path=session.cache_path, **signed_in).save(st.session_state)
            st.rerun()
        else:
            st.error("Invalid email or password.")
    st.stop()

token = str(session.access_token)

# ---------------------------------------------------------------------------
# Sidebar -- navigation + API status
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("MeetAct")
    st.caption(session.email or "")
    st.markdown("---")

    page = st.radio(
        "Navigate",
        ["Dashboard", "Upload Meeting", "Meetings", "Settings"],
        label_visibility="collapsed",
    )

    st.markdown("---")
    if api_client.check_health():
        st.markdown(":green_circle: API connected")
    else:
        st.markdown(":red_circle: API unreachable")

    if st.button("Sign out"):
        session.clear(st.session_state)
        st.rerun()


def _changed_fields(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name in EDITABLE_FIELDS:
        old, new = before.get(name), after.get(name)
        if (old or None) != (new or None):
            changes[name] = new or None
    return changes


# ---------------------------------------------------------------------------
# Page: Dashboard
# ---------------------------------------------------------------------------
if page == "Dashboard":
    st.header("Dashboard")
    stats = api_client.get_stats(token)
    col1, col2, col3 = st.columns(3)
    col1.metric("Time saved", stats.get("timeSavedLabel", "0 min"))
    col2.metric("Actions completed", stats.get("actionsCompleted", 0))
    col3.metric("Open items", stats.get("openItems", 0))

    st.subheader("Recent meetings")
    for m in api_client.get_meetings(token)[:5]:
        st.write(
            f"**{m['title']}** - {m.get('meetingDate', '')[:10]} - "
            f"{m.get('openCount', 0)} open / {m.get('actionItemsCount', 0)} total"
        )

# ---------------------------------------------------------------------------
# Page: Upload Meeting
# ---------------------------------------------------------------------------
elif page == "Upload Meeting":
    st.header("Upload Meeting")
    st.write("Paste a transcript or upload an audio recording.")

    uploaded_file = st.file_uploader(
        "Choose a file",
        type=["txt", "mp3", "wav", "m4a", "ogg", "webm"],
    )
    transcript = st.text_area("Transcript", height=240)
    default_title = uploaded_file.name.rsplit(".", 1)[0] if uploaded_file else ""
    title = st.text_input("Meeting title", value=default_title, placeholder="e.g. Sprint Planning")

    is_audio = bool(uploaded_file and (uploaded_file.type or "").startswith("audio/"))
    if is_audio:
        st.info("Audio is transcribed with speaker labels before extraction. Max 25 MB.")

    if st.button("Process", disabled=not (uploaded_file or transcript.strip())):
        text = transcript
        if uploaded_file and not is_audio:
            text = uploaded_file.getvalue().decode("utf-8", errors="replace")

        with st.spinner("Processing meeting..."):
            meeting = api_client.create_meeting(token, title or "Untitled Meeting", text or None)
            if meeting and is_audio and uploaded_file:
                transcribed = api_client.transcribe_upload(
                    token,
                    uploaded_file.getvalue(),
                    uploaded_file.name,
                    uploaded_file.type,
                    meeting["id"],
                )
                if not transcribed:
                    st.stop()
            result = api_client.process_meeting(token, meeting["id"]) if meeting else {}

        if result:
            st.success(f"Extracted {result.get('count', 0)} action items.")
            st.session_state["active_meeting"] = meeting["id"]

# ---------------------------------------------------------------------------
# Page: Meetings
# ---------------------------------------------------------------------------
elif page == "Meetings":
    st.header("Meetings")
    meetings = api_client.get_meetings(token)
    if not meetings:
        st.info("No meetings yet. Upload one to get started.")
        st.stop()

    ids = [m["id"] for m in meetings]
    active = st.session_state.get("active_meeting")
    meeting_id = st.selectbox(
        "Meeting",
        options=ids,
        index=ids.index(active) if active in ids else 0,
        format_func=lambda i: next(m["title"] for m in meetings if m["id"] == i),
    )
    detail = api_client.get_meeting_detail(token, meeting_id)
    items_key = f"items_{meeting_id}"
    if items_key not in st.session_state:
        st.session_state[items_key] = detail.get("actionItems", [])

    @st.fragment(run_every="15s")
    def action_items_table() -> None:
        current = api_client.get_action_items(token, meeting_id)
        items: list[dict[str, Any]] = st.session_state[items_key]
        if current is not None:
            items = apply_events(items, snapshot_events(items, current))
            st.session_state[items_key] = items

        rows = [
            {
                "select": False,
                **{f: item.get(f) for f in EDITABLE_FIELDS},
                "confidence": item.get("confidence"),
                "review": float(item.get("confidence") or 0) < REVIEW_THRESHOLD,
                "jira_issue_key": item.get("jira_issue_key"),
            }
            for item in items
        ]
        edited = st.data_editor(
            rows,
            key=f"editor_{meeting_id}",
            use_container_width=True,
            column_config={
                "select": st.column_config.CheckboxColumn("Select"),
                "action_item": st.column_config.TextColumn("Action Item", required=True),
                "priority": st.column_config.SelectboxColumn(
                    "Priority", options=[p.value for p in Priority]
                ),
                "status": st.column_config.SelectboxColumn(
                    "Status", options=[s.value for s in Status]
                ),
                "confidence": st.column_config.NumberColumn("Confidence", disabled=True),
                "review": st.column_config.CheckboxColumn("Needs review", disabled=True),
                "jira_issue_key": st.column_config.TextColumn("Jira", disabled=True),
            },
        )

        # Each edit is persisted immediately and applied optimistically.
        for item, row in zip(items, edited, strict=False):
            changes = _changed_fields(item, row)
            if changes and api_client.update_action_item(token, item["id"], changes):
                item.update(changes)

        selected = [item["id"] for item, row in zip(items, edited, strict=False) if row["select"]]
        scoped = select_items(items, selected)
        title = str(detail.get("title", "meeting"))

        col1, col2, col3 = st.columns(3)
        col1.download_button(
            "Export CSV",
            data=to_csv(scoped),
            file_name=export_filename(title, "csv"),
            mime="text/csv",
        )
        col2.download_button(
            "Export JSON",
            data=to_json(scoped),
            file_name=export_filename(title, "json"),
            mime="application/json",
        )
        if col3.button("Push to Jira", disabled=not scoped):
            result = api_client.push_to_jira(
                token,
                [
                    {
                        "id": item["id"],
                        "summary": item.get("action_item"),
                        "description": item.get("notes"),
                        "assignee": item.get("owner_email") or item.get("owner"),
                        "dueDate": item.get("deadline"),
                        "priority": item.get("priority") or "Medium",
                    }
                    for item in scoped
                ],
            )
            if result:
                st.success(f"Created {len(result.get('created', []))} Jira issues.")
                for err in result.get("errors", []):
                    st.warning(f"{err['id']}: {err['error']}")

    action_items_table()

    with st.expander("Transcript"):
        st.text(detail.get("transcript") or "")

    if st.button("Delete meeting", type="secondary"):
        if api_client.delete_meeting(token, meeting_id):
            st.session_state.pop(items_key, None)
            st.rerun()

# ---------------------------------------------------------------------------
# Page: Settings
# ---------------------------------------------------------------------------
elif page == "Settings":
    st.header("Settings")
    connected = {i["service"] for i in api_client.get_integrations(token)}

    st.subheader("Jira")
    if "jira" in connected:
        st.markdown(":white_check_mark: Connected")
    st.caption(
        "Create an API token at https://id.atlassian.com/manage-profile/security/api-tokens"
    )
    with st.form("jira"):
        domain = st.text_input("Jira Domain", placeholder="your-company")
        jira_email = st.text_input("Jira Email")
        api_token = st.text_input("API Token", type="password")
        project_key = st.text_input("Default Project Key", placeholder="PROJ")
        save = st.form_submit_button("Update Connection" if "jira" in connected else "Connect Jira")
    if save and api_client.connect_jira(token, domain, jira_email, api_token, project_key):
        st.success("Jira connected.")
        st.rerun()

    if "jira" in connected and st.button("Disconnect Jira"):
        if api_client.disconnect(token, "jira"):
            st.rerun()
