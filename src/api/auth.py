"""Bearer-token authentication against Supabase Auth."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException
from supabase import Client

from src.ingestion.storage import get_supabase_client

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """The acting user and a Supabase client scoped to their token."""

    user_id: str
    client: Client


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return token.strip()


def get_auth_context(
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext:
    """Resolve the bearer token to a user; 401 when missing or rejected."""
    token = _bearer_token(authorization)
    client = get_supabase_client(token)
    try:
        response = client.auth.get_user(token)
    except Exception as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Unauthorized") from exc

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return AuthContext(user_id=str(user.id), client=client)


Auth = Annotated[AuthContext, Depends(get_auth_context)]
