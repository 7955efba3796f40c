# src/uso_auth/app/auth/deps.py
from __future__ import annotations
from typing import Optional
from fastapi import Header, Request

from uso_auth.app.schemas.identity import CredentialClaims


async def require_credential(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> CredentialClaims:
    """
    Route dependency: validates the internal bearer token and hands the
    claims to the handler. Raises NoCredential / InvalidCredential, which the
    app's exception handler turns into 401s.
    """
    gateway = request.app.state.gateway
    return gateway.validator.validate(authorization)
