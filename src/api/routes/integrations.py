"""Integration settings: connect, list and disconnect Jira."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Response

from src.api.auth import Auth
from src.api.models import JiraConnectRequest
from src.integrations.credentials import (
    IntegrationService,
    JiraCredential,
    delete_integration,
    list_integrations,
    save_credential,
)

router = APIRouter()


@router.get("/api/integrations")
def list_all(auth: Auth) -> list[dict[str, Any]]:
    return list_integrations(auth.client, auth.user_id)


@router.put("/api/integrations/jira", status_code=204)
def connect_jira(request: JiraConnectRequest, auth: Auth) -> Response:
    """Validate, normalize and store the Jira credential (replaces any previous one)."""
    credential = JiraCredential.create(
        request.domain, request.email, request.api_token, request.project_key
    )
    save_credential(auth.client, auth.user_id, credential, cloud_id=credential.domain)
    return Response(status_code=204)


@router.delete("/api/integrations/{service}", status_code=204)
def disconnect(service: IntegrationService, auth: Auth) -> Response:
    if not delete_integration(auth.client, auth.user_id, service):
        raise HTTPException(status_code=404, detail=f"{service.value} is not connected")
    return Response(status_code=204)
