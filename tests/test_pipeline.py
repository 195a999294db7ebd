"""Tests for Supabase persistence and pipeline runs against an in-memory client."""

from __future__ import annotations

import asyncio
import base64
import threading
from datetime import UTC, datetime
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from conftest import MEETING_ID, OTHER_USER_ID, USER_ID, FakeSupabase

from src.errors import MeetingAccessError, MeetingNotFoundError, MissingInputError
from src.extraction.models import ActionItemCandidate
from src.ingestion.models import AudioSource, TranscriptionResult
from src.ingestion.pipeline import extract_and_store, process_meeting, transcribe_and_reconcile
from src.ingestion.storage import (
    get_owned_meeting,
    list_action_items,
    list_meetings,
    mark_latest_meeting_for_audio,
    mark_meeting_processed,
    store_action_items,
)

CANDIDATES = [
    ActionItemCandidate(task="Update the API docs", owner="John"),
    ActionItemCandidate(task="Review the API docs", owner="Sarah", confidence=0.6),
    ActionItemCandidate(task="Book the retro room"),
]


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class TestStoreActionItems:
    def test_single_insert_scoped_rows(self, supabase: FakeSupabase) -> None:
        rows = store_action_items(supabase, MEETING_ID, USER_ID, CANDIDATES)  # type: ignore[arg-type]

        inserts = supabase.calls_to("action_items", "insert")
        assert len(inserts) == 1
        assert len(inserts[0].payload) == 3
        assert len(rows) == 3
        assert all(r["meeting_id"] == MEETING_ID and r["user_id"] == USER_ID for r in rows)
        assert all(r["id"] for r in rows)

    def test_empty_makes_no_call(self, supabase: FakeSupabase) -> None:
        assert store_action_items(supabase, MEETING_ID, USER_ID, []) == []  # type: ignore[arg-type]
        assert supabase.calls == []

    def test_insert_failure_propagates(self, supabase: FakeSupabase) -> None:
        supabase.on("action_items", "insert", RuntimeError("violates row-level security policy"))
        with pytest.raises(RuntimeError, match="row-level security"):
            store_action_items(supabase, MEETING_ID, USER_ID, CANDIDATES)  # type: ignore[arg-type]


def test_list_action_items_oldest_first(supabase: FakeSupabase) -> None:
    list_action_items(supabase, MEETING_ID)  # type: ignore[arg-type]
    query = supabase.calls_to("action_items", "select")[0]
    assert query.filters == [("meeting_id", MEETING_ID)]
    assert query.orders == [("created_at", False)]


def test_list_meetings_newest_first_with_counts(supabase: FakeSupabase) -> None:
    list_meetings(supabase, USER_ID)  # type: ignore[arg-type]
    query = supabase.calls_to("meetings", "select")[0]
    assert query.filters == [("user_id", USER_ID)]
    assert query.orders == [("meeting_date", True)]
    assert "action_items(id, status)" in str(query.columns)


class TestOwnership:
    def test_owner_passes(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        assert get_owned_meeting(supabase, MEETING_ID, USER_ID)["id"] == MEETING_ID  # type: ignore[arg-type]

    def test_other_user_rejected(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        with pytest.raises(MeetingAccessError):
            get_owned_meeting(supabase, MEETING_ID, OTHER_USER_ID)  # type: ignore[arg-type]

    def test_missing_meeting(self, supabase: FakeSupabase) -> None:
        with pytest.raises(MeetingNotFoundError):
            get_owned_meeting(supabase, MEETING_ID, USER_ID)  # type: ignore[arg-type]


class TestMarkProcessed:
    def test_requires_transcript(self, supabase: FakeSupabase) -> None:
        with pytest.raises(ValueError):
            mark_meeting_processed(supabase, MEETING_ID, "  ")  # type: ignore[arg-type]
        assert supabase.calls == []

    def test_sets_transcript_and_processed_at(self, supabase: FakeSupabase) -> None:
        mark_meeting_processed(supabase, MEETING_ID, "John: hi")  # type: ignore[arg-type]
        update = supabase.calls_to("meetings", "update")[0]
        assert update.payload["transcript"] == "John: hi"
        assert update.payload["processed_at"]
        assert update.filters == [("id", MEETING_ID)]

    def test_latest_meeting_for_audio(self, supabase: FakeSupabase) -> None:
        supabase.on("meetings", "select", [{"id": "newest"}])

        updated = mark_latest_meeting_for_audio(supabase, USER_ID, "https://cdn/a.mp3", "text")  # type: ignore[arg-type]

        assert updated == "newest"
        select = supabase.calls_to("meetings", "select")[0]
        assert select.filters == [("user_id", USER_ID), ("audio_url", "https://cdn/a.mp3")]
        assert select.orders == [("created_at", True)]
        assert select.limit_n == 1
        assert supabase.calls_to("meetings", "update")[0].filters == [("id", "newest")]

    def test_latest_meeting_for_audio_no_match(self, supabase: FakeSupabase) -> None:
        assert mark_latest_meeting_for_audio(supabase, USER_ID, "https://cdn/a.mp3", "text") is None  # type: ignore[arg-type]
        assert supabase.calls_to("meetings", "update") == []


# ---------------------------------------------------------------------------
# Pipeline runs
# ---------------------------------------------------------------------------


class TestExtractAndStore:
    def test_stores_extracted_items(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        meeting_date = datetime(2025, 6, 2, tzinfo=UTC)

        with patch("src.ingestion.pipeline.extract_action_items", return_value=CANDIDATES) as mock_extract:
            rows = asyncio.run(
                extract_and_store(supabase, USER_ID, MEETING_ID, "transcript", meeting_date)  # type: ignore[arg-type]
            )

        mock_extract.assert_called_once_with("transcript", meeting_date)
        assert [r["action_item"] for r in rows] == [c.task for c in CANDIDATES]

    def test_foreign_meeting_never_calls_model(
        self, supabase: FakeSupabase, meeting_row: dict[str, Any]
    ) -> None:
        supabase.on("meetings", "select", [meeting_row])

        with patch("src.ingestion.pipeline.extract_action_items") as mock_extract:
            with pytest.raises(MeetingAccessError):
                asyncio.run(extract_and_store(supabase, OTHER_USER_ID, MEETING_ID, "transcript"))  # type: ignore[arg-type]

        mock_extract.assert_not_called()
        assert supabase.calls_to("action_items") == []

    def test_zero_items_stores_nothing(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        with patch("src.ingestion.pipeline.extract_action_items", return_value=[]):
            rows = asyncio.run(extract_and_store(supabase, USER_ID, MEETING_ID, "transcript"))  # type: ignore[arg-type]
        assert rows == []
        assert supabase.calls_to("action_items") == []


class TestProcessMeeting:
    def test_marks_processed(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])

        with patch("src.ingestion.pipeline.extract_action_items", return_value=CANDIDATES[:1]) as mock_extract:
            rows = asyncio.run(process_meeting(supabase, USER_ID, MEETING_ID))  # type: ignore[arg-type]

        assert len(rows) == 1
        transcript, meeting_date = mock_extract.call_args.args
        assert transcript == meeting_row["transcript"]
        assert meeting_date == datetime(2025, 6, 2, tzinfo=UTC)
        update = supabase.calls_to("meetings", "update")[0]
        assert update.payload["processed_at"]

    def test_no_transcript(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [{**meeting_row, "transcript": None}])
        with patch("src.ingestion.pipeline.extract_action_items") as mock_extract:
            with pytest.raises(MissingInputError):
                asyncio.run(process_meeting(supabase, USER_ID, MEETING_ID))  # type: ignore[arg-type]
        mock_extract.assert_not_called()
        assert supabase.calls_to("meetings", "update") == []


class TestTranscribeAndReconcile:
    RESULT = TranscriptionResult(transcript="[00:01] John: hi", model="primary-model")

    def test_updates_given_meeting(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        source = AudioSource(audio_base64=base64.b64encode(b"abc").decode())

        with patch("src.ingestion.pipeline.transcribe_audio", return_value=self.RESULT) as mock_transcribe:
            run = asyncio.run(transcribe_and_reconcile(supabase, USER_ID, source, MEETING_ID))  # type: ignore[arg-type]

        assert mock_transcribe.call_args.args[0].data == b"abc"
        assert run.meeting_updated
        assert run.meeting_id == MEETING_ID
        update = supabase.calls_to("meetings", "update")[0]
        assert update.payload["transcript"] == "[00:01] John: hi"
        assert supabase.calls_to("action_items") == []

    def test_reconciles_by_audio_url(self, supabase: FakeSupabase) -> None:
        supabase.on("meetings", "select", [{"id": "by-url"}])
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"abc"))
        source = AudioSource(audio_url="https://cdn.example.com/a.mp3")

        with patch("src.ingestion.pipeline.transcribe_audio", return_value=self.RESULT):
            run = asyncio.run(
                transcribe_and_reconcile(supabase, USER_ID, source, transport=transport)  # type: ignore[arg-type]
            )

        assert run.meeting_id == "by-url"
        assert supabase.calls_to("meetings", "update")[0].filters == [("id", "by-url")]

    def test_no_matching_meeting(self, supabase: FakeSupabase) -> None:
        source = AudioSource(audio_base64=base64.b64encode(b"abc").decode())
        with patch("src.ingestion.pipeline.transcribe_audio", return_value=self.RESULT):
            run = asyncio.run(transcribe_and_reconcile(supabase, USER_ID, source))  # type: ignore[arg-type]
        assert not run.meeting_updated
        assert supabase.calls_to("meetings") == []

    def test_foreign_meeting_fetches_nothing(
        self, supabase: FakeSupabase, meeting_row: dict[str, Any]
    ) -> None:
        supabase.on("meetings", "select", [meeting_row])

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("audio should not be fetched")

        source = AudioSource(audio_url="https://cdn.example.com/a.mp3")
        with patch("src.ingestion.pipeline.transcribe_audio") as mock_transcribe:
            with pytest.raises(MeetingAccessError):
                asyncio.run(
                    transcribe_and_reconcile(
                        supabase,  # type: ignore[arg-type]
                        OTHER_USER_ID,
                        source,
                        MEETING_ID,
                        transport=httpx.MockTransport(handler),
                    )
                )
        mock_transcribe.assert_not_called()


def _recording(fn: Any, seen: list[tuple[str, int]]) -> Any:
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        seen.append((fn.__name__, threading.get_ident()))
        return fn(*args, **kwargs)

    return wrapper


class TestStorageRunsOffEventLoop:
    def test_process_meeting(self, supabase: FakeSupabase, meeting_row: dict[str, Any]) -> None:
        supabase.on("meetings", "select", [meeting_row])
        loop_thread = threading.get_ident()
        seen: list[tuple[str, int]] = []

        with (
            patch("src.ingestion.pipeline.get_owned_meeting", new=_recording(get_owned_meeting, seen)),
            patch("src.ingestion.pipeline.store_action_items", new=_recording(store_action_items, seen)),
            patch("src.ingestion.pipeline.mark_meeting_processed", new=_recording(mark_meeting_processed, seen)),
            patch("src.ingestion.pipeline.extract_action_items", return_value=CANDIDATES),
        ):
            asyncio.run(process_meeting(supabase, USER_ID, MEETING_ID))  # type: ignore[arg-type]

        assert [name for name, _ in seen] == [
            "get_owned_meeting",
            "get_owned_meeting",
            "store_action_items",
            "mark_meeting_processed",
        ]
        assert all(ident != loop_thread for _, ident in seen)

    def test_transcribe_reconcile_by_audio_url(self, supabase: FakeSupabase) -> None:
        supabase.on("meetings", "select", [{"id": "by-url"}])
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"abc"))
        loop_thread = threading.get_ident()
        seen: list[tuple[str, int]] = []
        result = TranscriptionResult(transcript="text", model="primary-model")

        with (
            patch(
                "src.ingestion.pipeline.mark_latest_meeting_for_audio",
                new=_recording(mark_latest_meeting_for_audio, seen),
            ),
            patch("src.ingestion.pipeline.transcribe_audio", return_value=result),
        ):
            asyncio.run(
                transcribe_and_reconcile(
                    supabase,  # type: ignore[arg-type]
                    USER_ID,
                    AudioSource(audio_url="https://cdn.example.com/a.mp3"),
                    transport=transport,
                )
            )

        assert [name for name, _ in seen] == ["mark_latest_meeting_for_audio"]
        assert seen[0][1] != loop_thread
