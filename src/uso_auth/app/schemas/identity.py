# src/uso_auth/app/schemas/identity.py

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field

PROVIDER = "kakao"


class ExternalIdentity(BaseModel):
    """
    "Who is this external user?" as reported by Kakao /v2/user/me.

    Produced fresh on every provider call and never persisted.

    Fields:
      - provider_user_id: Kakao's `id`, always canonicalized to str so that
        large integers and strings compare equal as the upsert key
      - raw_profile: the full response body, used by the member reconciler
    """

    model_config = ConfigDict(frozen=True)

    provider_user_id: str
    raw_profile: Dict[str, Any] = Field(default_factory=dict)

    provider: str = PROVIDER

    @property
    def subject(self) -> str:
        return f"{self.provider}:{self.provider_user_id}"

    @property
    def key(self) -> Tuple[str, str]:
        return (self.provider, self.provider_user_id)


class CredentialClaims(BaseModel):
    """Validated claim set of an internal credential."""

    model_config = ConfigDict(frozen=True)

    sub: str
    provider: str
    kakao_id: str
    iat: int
    exp: int
    iss: str
    aud: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.provider, self.kakao_id)
