"""Push confirmed action items to the caller's issue tracker."""

from __future__ import annotations

import asyncio

import httpx
from supabase import Client

from src.ingestion.storage import set_issue_key
from src.integrations.credentials import IntegrationService, load_credential
from src.integrations.jira import CreatedIssue, JiraPublisher, PublishItem, PublishResult


async def publish_to_jira(
    client: Client,
    user_id: str,
    items: list[PublishItem],
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PublishResult:
    """Create Jira issues for ``items`` and write each issue key back.

    The stored credential is loaded and validated before any network call.

    Raises:
        IntegrationNotConnectedError: The user has not connected Jira.
        InvalidIntegrationConfigError: The stored credential is incomplete.
    """
    credential = await asyncio.to_thread(load_credential, client, user_id, IntegrationService.JIRA)
    publisher = JiraPublisher(credential, transport=transport)

    async def write_back(item: PublishItem, issue: CreatedIssue) -> None:
        await asyncio.to_thread(set_issue_key, client, item.id, issue.key)

    return await publisher.publish(items, on_created=write_back)
