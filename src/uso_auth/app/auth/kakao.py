# src/uso_auth/app/auth/kakao.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from uso_auth.app.core.config import Settings
from uso_auth.app.core.errors import MissingInput, UpstreamRejected
from uso_auth.app.core.trace import auth_trace
from uso_auth.app.schemas.identity import ExternalIdentity


def _error_body(r: httpx.Response) -> Any:
    """Kakao answers errors as JSON ({"msg", "code"}); fall back to raw text."""
    try:
        return r.json()
    except ValueError:
        return r.text


class KakaoVerifier:
    """
    Resolves a Kakao access token to the account it belongs to by calling
    /v2/user/me. One request per call, never retried.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self._url = settings.kakao_user_me_url
        self._timeout = settings.kakao_timeout_sec
        self._client = client

    async def _get(self, access_token: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._client is not None:
            return await self._client.get(self._url, headers=headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(self._url, headers=headers)

    async def verify(self, access_token: Optional[str], *, field: str = "access_token") -> ExternalIdentity:
        if not access_token or not isinstance(access_token, str):
            raise MissingInput.field(field)

        r = await self._get(access_token)
        if r.status_code != 200:
            auth_trace("kakao.verify.rejected", status=r.status_code)
            raise UpstreamRejected(detail=_error_body(r))

        data: Dict[str, Any] = r.json()
        raw_id = data.get("id") if isinstance(data, dict) else None
        if raw_id is None or raw_id == "":
            auth_trace("kakao.verify.no_id")
            raise UpstreamRejected(detail="kakao response missing id")

        identity = ExternalIdentity(provider_user_id=str(raw_id), raw_profile=data)
        auth_trace("kakao.verify.ok", sub=identity.subject)
        return identity
