"""HTTP client wrapper for the MeetAct FastAPI backend."""

from __future__ import annotations

import base64
import os
from typing import Any

import httpx
import streamlit as st
from supabase import create_client

from src.config import settings

API_URL = os.getenv("API_URL", "http://localhost:8000")


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _error_message(e: httpx.HTTPError) -> str:
    if isinstance(e, httpx.HTTPStatusError):
        try:
            body = e.response.json()
        except ValueError:
            return str(e)
        return str(body.get("message") or body.get("error") or e)
    return str(e)


def check_health() -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{API_URL}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def sign_in(email: str, password: str) -> dict[str, str]:
    """Password sign-in against Supabase Auth; returns token, user id and email."""
    client = create_client(settings.supabase_url, settings.supabase_key)
    response = client.auth.sign_in_with_password({"email": email, "password": password})
    if response.session is None or response.user is None:
        return {}
    return {
        "access_token": response.session.access_token,
        "user_id": str(response.user.id),
        "email": response.user.email or email,
    }


def create_meeting(token: str, title: str, transcript: str | None = None) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(
            f"{API_URL}/api/meetings",
            json={"title": title, "transcript": transcript},
            headers=_headers(token),
            timeout=30.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Could not create meeting: {_error_message(e)}")
        return {}


def transcribe_upload(
    token: str,
    file_content: bytes,
    filename: str,
    mime_type: str | None,
    meeting_id: str,
) -> dict:  # type: ignore[type-arg]
    """Send an uploaded recording inline for transcription."""
    try:
        r = httpx.post(
            f"{API_URL}/api/transcribe",
            json={
                "audioBase64": base64.b64encode(file_content).decode("ascii"),
                "mimeType": mime_type,
                "fileName": filename,
                "meetingId": meeting_id,
            },
            headers=_headers(token),
            timeout=600.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Transcription failed: {_error_message(e)}")
        return {}


def process_meeting(token: str, meeting_id: str) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(
            f"{API_URL}/api/meetings/{meeting_id}/process",
            headers=_headers(token),
            timeout=180.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Extraction failed: {_error_message(e)}")
        return {}


def get_meetings(token: str) -> list[dict]:  # type: ignore[type-arg]
    try:
        r = httpx.get(f"{API_URL}/api/meetings", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return []


def get_stats(token: str) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.get(f"{API_URL}/api/stats", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def get_meeting_detail(token: str, meeting_id: str) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.get(f"{API_URL}/api/meetings/{meeting_id}", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def get_action_items(token: str, meeting_id: str) -> list[dict] | None:  # type: ignore[type-arg]
    """Current rows, or None when the poll failed (keep what is on screen)."""
    try:
        r = httpx.get(
            f"{API_URL}/api/meetings/{meeting_id}/action-items",
            headers=_headers(token),
            timeout=10.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return None


def update_action_item(token: str, item_id: str, updates: dict[str, Any]) -> bool:
    try:
        r = httpx.patch(
            f"{API_URL}/api/action-items/{item_id}",
            json=updates,
            headers=_headers(token),
            timeout=10.0,
        )
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Failed to update action item: {_error_message(e)}")
        return False


def delete_meeting(token: str, meeting_id: str) -> bool:
    try:
        r = httpx.delete(f"{API_URL}/api/meetings/{meeting_id}", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Delete failed: {_error_message(e)}")
        return False


def push_to_jira(token: str, items: list[dict[str, Any]]) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(
            f"{API_URL}/api/push-to-jira",
            json={"actionItems": items},
            headers=_headers(token),
            timeout=120.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Jira export failed: {_error_message(e)}")
        return {}


def get_integrations(token: str) -> list[dict]:  # type: ignore[type-arg]
    try:
        r = httpx.get(f"{API_URL}/api/integrations", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return []


def connect_jira(token: str, domain: str, email: str, api_token: str, project_key: str) -> bool:
    try:
        r = httpx.put(
            f"{API_URL}/api/integrations/jira",
            json={"domain": domain, "email": email, "apiToken": api_token, "projectKey": project_key},
            headers=_headers(token),
            timeout=10.0,
        )
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Could not save Jira settings: {_error_message(e)}")
        return False


def disconnect(token: str, service: str) -> bool:
    try:
        r = httpx.delete(f"{API_URL}/api/integrations/{service}", headers=_headers(token), timeout=10.0)
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Could not disconnect {service}: {_error_message(e)}")
        return False
