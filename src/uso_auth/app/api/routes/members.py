# src/uso_auth/app/api/routes/members.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from uso_auth.app.auth.deps import require_credential
from uso_auth.app.schemas.identity import CredentialClaims

router = APIRouter(tags=["members"])


class MemberUpsertBody(BaseModel):
    kakao_access_token: Optional[str] = None


@router.post("/members/upsert")
async def upsert_member(
    request: Request,
    body: Optional[MemberUpsertBody] = None,
    claims: CredentialClaims = Depends(require_credential),
) -> Dict[str, Any]:
    """
    Re-read the caller's Kakao profile and upsert it into `members`.
    Requires an internal bearer credential.
    """
    member = await request.app.state.gateway.sync_profile(
        claims, body.kakao_access_token if body else None
    )
    return {"ok": True, "member": member.model_dump()}


@router.get("/me")
async def me(
    request: Request,
    claims: CredentialClaims = Depends(require_credential),
) -> Dict[str, Any]:
    """The caller's member record, or null before the first /members/upsert."""
    member = await request.app.state.gateway.read_profile(claims)
    return {"member": member.model_dump() if member is not None else None}
