"""Publish endpoint: create tracker issues for selected action items."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.auth import Auth
from src.api.models import (
    CreatedIssueResponse,
    PublishErrorResponse,
    PublishRequest,
    PublishResponse,
)
from src.integrations.jira import PublishItem
from src.integrations.publish import publish_to_jira

router = APIRouter()


@router.post(
    "/api/push-to-jira",
    response_model=PublishResponse,
    response_model_exclude_none=True,
)
async def push_to_jira(request: PublishRequest, auth: Auth) -> PublishResponse:
    """Create one Jira issue per action item.

    Answers 200 as long as the batch could be attempted, even if every item
    failed; callers must read ``errors`` for per-item outcomes.
    """
    if not request.action_items:
        raise HTTPException(status_code=400, detail="No action items provided")

    items = [
        PublishItem(
            id=i.id,
            summary=i.summary,
            description=i.description,
            assignee=i.assignee,
            due_date=i.due_date,
            priority=i.priority,
        )
        for i in request.action_items
    ]
    result = await publish_to_jira(auth.client, auth.user_id, items)

    return PublishResponse(
        created=[CreatedIssueResponse(id=c.id, key=c.key, summary=c.summary) for c in result.created],
        errors=[PublishErrorResponse(id=e.id, error=e.error) for e in result.errors] or None,
    )
