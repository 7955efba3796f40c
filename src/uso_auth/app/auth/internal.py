from __future__ import annotations

import re
import time
from typing import Any, Callable, Dict, Optional

import jwt
from pydantic import ValidationError

from uso_auth.app.core.config import Settings
from uso_auth.app.core.errors import InvalidCredential, NoCredential
from uso_auth.app.core.trace import auth_trace
from uso_auth.app.schemas.identity import CredentialClaims, ExternalIdentity

# =========================
# Internal HS256 token config
# =========================
ALGO = "HS256"
REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]

_BEARER = re.compile(r"^Bearer (.+)$", re.IGNORECASE)


def _now() -> int:
    return int(time.time())


# -------------------------
# Issuer
# -------------------------
class CredentialIssuer:
    """Mints the internal session token for a verified Kakao identity."""

    def __init__(self, settings: Settings, clock: Callable[[], int] = _now):
        self._secret = settings.jwt_secret
        self._iss = settings.jwt_issuer
        self._aud = settings.jwt_audience
        self._ttl = settings.jwt_ttl_sec
        self._clock = clock

    def issue(self, identity: ExternalIdentity) -> str:
        now = self._clock()
        payload: Dict[str, Any] = {
            "sub": identity.subject,
            "provider": identity.provider,
            "kakao_id": identity.provider_user_id,
            "iat": now,
            "iss": self._iss,
            "aud": self._aud,
            "exp": now + self._ttl,
        }
        tok = jwt.encode(payload, self._secret, algorithm=ALGO)
        auth_trace(
            "internal.issue",
            sub=payload["sub"],
            exp=payload["exp"],
            exp_human=time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(payload["exp"])),
        )
        return tok


# -------------------------
# Validator
# -------------------------
class CredentialValidator:
    """
    Checks an `Authorization: Bearer <token>` header against the signing
    secret, issuer and audience. Every verification failure surfaces as the
    same InvalidCredential; the precise reason only goes to the auth trace.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._iss = settings.jwt_issuer
        self._aud = settings.jwt_audience

    @staticmethod
    def extract_bearer(header_value: Optional[str]) -> str:
        m = _BEARER.match(header_value or "")
        if not m or not m.group(1).strip():
            raise NoCredential()
        return m.group(1).strip()

    def decode(self, token: str) -> CredentialClaims:
        try:
            raw = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGO],
                audience=self._aud,
                issuer=self._iss,
                options={"require": REQUIRED_CLAIMS},
            )
            claims = CredentialClaims.model_validate(raw)
        except jwt.PyJWTError as ex:
            auth_trace("internal.verify_failed", reason=type(ex).__name__)
            raise InvalidCredential() from None
        except ValidationError:
            auth_trace("internal.verify_failed", reason="claim_shape")
            raise InvalidCredential() from None

        if claims.sub != f"{claims.provider}:{claims.kakao_id}":
            auth_trace("internal.verify_failed", reason="subject_mismatch")
            raise InvalidCredential()

        auth_trace("internal.verify_ok", sub=claims.sub, exp=claims.exp)
        return claims

    def validate(self, header_value: Optional[str]) -> CredentialClaims:
        return self.decode(self.extract_bearer(header_value))
