# src/uso_auth/app/api/routes/auth.py
from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["auth"])


class KakaoExchangeBody(BaseModel):
    access_token: Optional[str] = None


@router.post("/auth/kakao")
async def kakao_exchange(request: Request, body: Optional[KakaoExchangeBody] = None) -> Dict[str, str]:
    """
    Exchange a Kakao access token for an internal HS256 credential.

    400 missing access_token | 401 kakao_invalid | 500 server_error
    """
    token = await request.app.state.gateway.exchange_token(body.access_token if body else None)
    return {"token": token}
