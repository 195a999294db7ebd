"""Shared fixtures: an in-memory stand-in for the Supabase query builder and an
authenticated TestClient."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.auth import AuthContext, get_auth_context
from src.api.main import app

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
MEETING_ID = "33333333-3333-3333-3333-333333333333"


class FakeQuery:
    """Records one chained PostgREST call; ``execute`` asks the owner for data."""

    def __init__(self, owner: FakeSupabase, table: str) -> None:
        self.owner = owner
        self.table = table
        self.op = "select"
        self.columns: str | None = None
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list[tuple[str, Any]] = []
        self.orders: list[tuple[str, bool]] = []
        self.limit_n: int | None = None

    def select(self, columns: str = "*", **_: Any) -> FakeQuery:
        self.columns = columns
        return self

    def insert(self, payload: Any) -> FakeQuery:
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload: Any, on_conflict: str | None = None) -> FakeQuery:
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self) -> FakeQuery:
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self.orders.append((column, desc))
        return self

    def limit(self, n: int) -> FakeQuery:
        self.limit_n = n
        return self

    def execute(self) -> SimpleNamespace:
        self.owner.calls.append(self)
        return SimpleNamespace(data=self.owner.respond(self))


Responder = Callable[[FakeQuery], Any]


class FakeSupabase:
    """Minimal Supabase client double.

    ``responses[(table, op)]`` is a list of rows, a callable taking the query,
    or an exception instance to raise. Unconfigured inserts echo their rows
    back with generated ids; everything else returns ``[]``.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], Any] = {}
        self.calls: list[FakeQuery] = []
        self.storage = MagicMock()
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def on(self, table: str, op: str, response: Any) -> FakeSupabase:
        self.responses[(table, op)] = response
        return self

    def respond(self, query: FakeQuery) -> Any:
        response = self.responses.get((query.table, query.op))
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(query)
        if response is not None:
            return response
        if query.op == "insert":
            rows = query.payload if isinstance(query.payload, list) else [query.payload]
            return [
                {"id": f"row-{next(self._ids)}", "created_at": f"2025-06-02T00:00:0{i}Z", **row}
                for i, row in enumerate(rows)
            ]
        return []

    def calls_to(self, table: str, op: str | None = None) -> list[FakeQuery]:
        return [c for c in self.calls if c.table == table and (op is None or c.op == op)]


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def meeting_row() -> dict[str, Any]:
    return {
        "id": MEETING_ID,
        "user_id": USER_ID,
        "title": "Sprint Planning",
        "meeting_date": "2025-06-02T00:00:00+00:00",
        "transcript": "John: I'll update the API docs by Friday.",
        "audio_url": None,
        "processed_at": None,
    }


@pytest.fixture
def client(supabase: FakeSupabase) -> Iterator[TestClient]:
    """TestClient authenticated as USER_ID against the fake Supabase."""
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        user_id=USER_ID, client=supabase  # type: ignore[arg-type]
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_auth_context, None)


@pytest.fixture
def client_no_raise(supabase: FakeSupabase) -> Iterator[TestClient]:
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        user_id=USER_ID, client=supabase  # type: ignore[arg-type]
    )
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_auth_context, None)
