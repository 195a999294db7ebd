"""Publish action items as Jira Cloud issues.

One issue-creation call per item. Items are independent: a failed call is
recorded against that item and the batch carries on. Successful creations are
reported in input order regardless of which call finished first.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from src.config import settings
from src.extraction.models import parse_timestamp
from src.integrations.credentials import JiraCredential

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "MeetAct Action Item"
DEFAULT_DESCRIPTION = "Created from MeetAct"
ISSUE_TYPE = "Task"

PRIORITY_NAMES = {"High": "High", "Medium": "Medium", "Low": "Low"}


@dataclass
class PublishItem:
    id: str
    summary: str
    description: str | None = None
    assignee: str | None = None
    due_date: str | None = None
    priority: str | None = None


@dataclass
class CreatedIssue:
    id: str
    key: str
    summary: str


@dataclass
class PublishFailure:
    id: str
    error: str


@dataclass
class PublishResult:
    created: list[CreatedIssue] = field(default_factory=list)
    errors: list[PublishFailure] = field(default_factory=list)


OnCreated = Callable[[PublishItem, CreatedIssue], Awaitable[None]]


def map_priority(value: str | None) -> str:
    return PRIORITY_NAMES.get(value or "", "Medium")


def format_due_date(value: str | None) -> str | None:
    """Calendar date (YYYY-MM-DD) of an ISO date or timestamp; None if unparseable."""
    parsed = parse_timestamp(value)
    return parsed.date().isoformat() if parsed else None


def build_issue_payload(item: PublishItem, project_key: str) -> dict[str, Any]:
    """Request body for ``POST /rest/api/3/issue``."""
    description = item.description or DEFAULT_DESCRIPTION
    if item.assignee:
        description = f"{description}\n\nOwner: {item.assignee}"

    fields: dict[str, Any] = {
        "project": {"key": project_key},
        "summary": item.summary or DEFAULT_SUMMARY,
        "description": {
            "type": "doc",
            "version": 1,
            "content": [
                {
                    "type": "paragraph",
                    "content": [{"type": "text", "text": description}],
                }
            ],
        },
        "issuetype": {"name": ISSUE_TYPE},
        "priority": {"name": map_priority(item.priority)},
    }
    due_date = format_due_date(item.due_date)
    if due_date:
        fields["duedate"] = due_date
    return {"fields": fields}


class JiraPublisher:
    """Creates Jira issues for a batch of action items."""

    def __init__(
        self,
        credential: JiraCredential,
        *,
        concurrency: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credential = credential
        self.concurrency = max(1, concurrency or settings.tracker_publish_concurrency)
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.credential.base_url,
            auth=(self.credential.email, self.credential.api_token),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _create_issue(
        self,
        http: httpx.AsyncClient,
        item: PublishItem,
    ) -> CreatedIssue | PublishFailure:
        payload = build_issue_payload(item, self.credential.project_key)
        try:
            response = await http.post("/rest/api/3/issue", json=payload)
            if not response.is_success:
                logger.error("Jira API error %s: %s", response.status_code, response.text)
                return PublishFailure(id=item.id, error=f"Jira API error: {response.status_code}")
            body = response.json()
            return CreatedIssue(id=str(body["id"]), key=str(body["key"]), summary=item.summary)
        except Exception as exc:
            logger.exception("Error creating Jira issue for action item %s", item.id)
            return PublishFailure(id=item.id, error=str(exc) or type(exc).__name__)

    async def publish(
        self,
        items: list[PublishItem],
        on_created: OnCreated | None = None,
    ) -> PublishResult:
        """Create one issue per item.

        ``on_created`` runs after each successful creation; its failures are
        logged and never turn the item into an error.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async with self._client() as http:

            async def run(item: PublishItem) -> CreatedIssue | PublishFailure:
                async with semaphore:
                    outcome = await self._create_issue(http, item)
                if isinstance(outcome, CreatedIssue) and on_created is not None:
                    try:
                        await on_created(item, outcome)
                    except Exception:
                        logger.warning(
                            "Could not record issue %s on action item %s",
                            outcome.key,
                            item.id,
                            exc_info=True,
                        )
                return outcome

            outcomes = await asyncio.gather(*(run(item) for item in items))

        result = PublishResult()
        for outcome in outcomes:
            if isinstance(outcome, CreatedIssue):
                result.created.append(outcome)
            else:
                result.errors.append(outcome)

        logger.info("Created %d Jira issues, %d errors", len(result.created), len(result.errors))
        return result
