# src/uso_auth/app/schemas/member.py

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_NICKNAME = "Guest"


class MemberRecord(BaseModel):
    """
    Canonical `members` row keyed by (provider, provider_user_id).

    Optional fields are explicit nulls, never empty strings. Columns the
    store adds on its own (ids, timestamps) are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    provider: str
    provider_user_id: str

    email: Optional[str] = None
    name: Optional[str] = None
    nickname: str = DEFAULT_NICKNAME
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    gender: Optional[str] = None
    age_range: Optional[str] = None
    birthyear: Optional[int] = None
    birthday: Optional[str] = None   # MMDD
    birthdate: Optional[str] = None  # YYYY-MM-DD, derived

    @property
    def key(self) -> Tuple[str, str]:
        return (self.provider, self.provider_user_id)
