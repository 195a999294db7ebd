"""Stored Jira credentials for the issue tracker integration."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar, cast

from supabase import Client

from src.errors import IntegrationNotConnectedError, InvalidIntegrationConfigError


class IntegrationService(StrEnum):
    JIRA = "jira"


JIRA_CONFIG_HINT = (
    "Please update your Jira settings with valid domain, email, API token, and project key."
)


def normalize_jira_domain(value: str) -> str:
    """``https://Acme.atlassian.net/`` -> ``acme``."""
    domain = value.strip()
    domain = re.sub(r"^https?://", "", domain, flags=re.IGNORECASE)
    domain = domain.rstrip("/")
    domain = re.sub(r"\.atlassian\.net$", "", domain, flags=re.IGNORECASE)
    return domain.lower()


@dataclass(frozen=True)
class JiraCredential:
    """Jira Cloud basic-auth credential with its destination project."""

    service: ClassVar[IntegrationService] = IntegrationService.JIRA

    domain: str
    email: str
    api_token: str
    project_key: str

    @classmethod
    def create(cls, domain: str, email: str, api_token: str, project_key: str) -> JiraCredential:
        """Build a normalized credential from user input.

        Raises:
            InvalidIntegrationConfigError: Any field is blank after normalization.
        """
        credential = cls(
            domain=normalize_jira_domain(domain),
            email=email.strip().lower(),
            api_token=api_token.strip(),
            project_key=project_key.strip().upper(),
        )
        if not all((credential.domain, credential.email, credential.api_token, credential.project_key)):
            raise InvalidIntegrationConfigError(cls.service, JIRA_CONFIG_HINT)
        return credential

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}.atlassian.net"

    def to_blob(self) -> str:
        return json.dumps(
            {
                "domain": self.domain,
                "email": self.email,
                "apiToken": self.api_token,
                "projectKey": self.project_key,
            }
        )


def _parse_jira(row: dict[str, Any]) -> JiraCredential:
    blob = row.get("access_token")
    parsed: dict[str, Any] = {}
    if blob:
        try:
            loaded = json.loads(blob)
        except (TypeError, ValueError) as exc:
            raise InvalidIntegrationConfigError(IntegrationService.JIRA, JIRA_CONFIG_HINT) from exc
        if not isinstance(loaded, dict):
            raise InvalidIntegrationConfigError(IntegrationService.JIRA, JIRA_CONFIG_HINT)
        parsed = loaded

    def field(key: str) -> str:
        value = parsed.get(key)
        return value if isinstance(value, str) else ""

    # Older rows kept the site name in cloud_id.
    domain = field("domain") or str(row.get("cloud_id") or "")
    return JiraCredential.create(domain, field("email"), field("apiToken"), field("projectKey"))


_PARSERS = {
    IntegrationService.JIRA: _parse_jira,
}


def parse_credential(service: IntegrationService, row: dict[str, Any]) -> JiraCredential:
    """Validate a stored ``integrations`` row into a credential."""
    return _PARSERS[service](row)


def load_credential(client: Client, user_id: str, service: IntegrationService) -> JiraCredential:
    """Fetch and validate the caller's credential for ``service``.

    Raises:
        IntegrationNotConnectedError: No credential is stored.
        InvalidIntegrationConfigError: The stored blob is incomplete or malformed.
    """
    result = (
        client.table("integrations")
        .select("access_token, cloud_id, expires_at")
        .eq("user_id", user_id)
        .eq("service", service.value)
        .limit(1)
        .execute()
    )
    rows = cast(list[dict[str, Any]], result.data or [])
    if not rows:
        raise IntegrationNotConnectedError(service.value)
    return parse_credential(service, rows[0])


def save_credential(
    client: Client,
    user_id: str,
    credential: JiraCredential,
    cloud_id: str | None = None,
) -> None:
    """Create or replace the caller's credential for its service."""
    row: dict[str, Any] = {
        "user_id": user_id,
        "service": credential.service.value,
        "access_token": credential.to_blob(),
        "cloud_id": cloud_id,
    }
    client.table("integrations").upsert(row, on_conflict="user_id,service").execute()


def list_integrations(client: Client, user_id: str) -> list[dict[str, Any]]:
    """Connected services without their secrets."""
    result = (
        client.table("integrations")
        .select("id, service, cloud_id, expires_at, created_at, updated_at")
        .eq("user_id", user_id)
        .execute()
    )
    return cast(list[dict[str, Any]], result.data or [])


def delete_integration(client: Client, user_id: str, service: IntegrationService) -> bool:
    result = (
        client.table("integrations")
        .delete()
        .eq("user_id", user_id)
        .eq("service", service.value)
        .execute()
    )
    return bool(result.data)
