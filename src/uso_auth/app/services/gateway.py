# src/uso_auth/app/services/gateway.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from uso_auth.app.auth.internal import CredentialIssuer, CredentialValidator
from uso_auth.app.auth.kakao import KakaoVerifier
from uso_auth.app.core.config import Settings
from uso_auth.app.core.errors import GatewayError, UnexpectedError
from uso_auth.app.schemas.identity import CredentialClaims
from uso_auth.app.schemas.member import MemberRecord
from uso_auth.app.services.members import MemberReconciler
from uso_auth.app.services.store import MemberStore

log = logging.getLogger(__name__)


@contextmanager
def _boundary(op: str) -> Iterator[None]:
    """Anything that is not already a GatewayError becomes an opaque server_error."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as ex:
        log.exception("%s failed", op)
        raise UnexpectedError() from ex


class Gateway:
    """
    Wires verifier, issuer, validator and reconciler into the three
    request pipelines. Holds no per-user state.
    """

    def __init__(
        self,
        settings: Settings,
        store: MemberStore,
        verifier: Optional[KakaoVerifier] = None,
    ):
        self.settings = settings
        self.store = store
        self.verifier = verifier or KakaoVerifier(settings)
        self.issuer = CredentialIssuer(settings)
        self.validator = CredentialValidator(settings)
        self.members = MemberReconciler(self.verifier, store)

    async def exchange_token(self, access_token: Optional[str]) -> str:
        with _boundary("exchange_token"):
            identity = await self.verifier.verify(access_token, field="access_token")
            return self.issuer.issue(identity)

    async def sync_profile(self, claims: CredentialClaims, kakao_access_token: Optional[str]) -> MemberRecord:
        with _boundary("sync_profile"):
            member = await self.members.reconcile(kakao_access_token)
            if member.provider_user_id != claims.kakao_id:
                log.warning(
                    "synced kakao:%s under credential %s",
                    member.provider_user_id, claims.sub,
                )
            return member

    async def read_profile(self, claims: CredentialClaims) -> Optional[MemberRecord]:
        with _boundary("read_profile"):
            return await self.members.read(claims.key)
