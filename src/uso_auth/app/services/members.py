# Maps a Kakao /v2/user/me payload -> the canonical `members` row and upserts it.
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from uso_auth.app.auth.kakao import KakaoVerifier
from uso_auth.app.schemas.identity import ExternalIdentity
from uso_auth.app.schemas.member import DEFAULT_NICKNAME, MemberRecord
from uso_auth.app.services.store import MemberStore

log = logging.getLogger(__name__)


def _opt(value: Any) -> Any:
    """Absent, null and empty values all normalize to None."""
    if value is None or value == "":
        return None
    return value


def _text(value: Any, *, field: str = "", subject: str = "") -> Optional[str]:
    """String columns: scalars are kept as text, nested objects are dropped."""
    value = _opt(value)
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    log.warning("dropping non-scalar %s for %s: %r", field or "field", subject or "?", value)
    return None


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    return value if isinstance(value, Mapping) else {}


def parse_birthyear(raw: Any, *, subject: str = "") -> Optional[int]:
    """Kakao sends birthyear as a string ("1990"); anything unparsable is dropped."""
    if _opt(raw) is None:
        return None
    try:
        return int(str(raw).strip(), 10)
    except ValueError:
        log.warning("dropping unparsable birthyear for %s: %r", subject or "?", raw)
        return None


def derive_birthdate(birthyear: Optional[int], birthday: Optional[str], *, subject: str = "") -> Optional[str]:
    """
    YYYY-MM-DD from birthyear + MMDD birthday. None unless both are present
    and birthday is exactly 4 characters.
    """
    if not birthyear or not birthday:
        return None
    if len(birthday) != 4:
        log.warning("dropping malformed birthday for %s: %r", subject or "?", birthday)
        return None
    return f"{birthyear}-{birthday[:2]}-{birthday[2:]}"


def build_member_row(identity: ExternalIdentity) -> MemberRecord:
    acc = _section(identity.raw_profile, "kakao_account")
    profile = _section(acc, "profile")
    subject = identity.subject

    birthyear = parse_birthyear(acc.get("birthyear"), subject=subject)
    birthday = _text(acc.get("birthday"), field="birthday", subject=subject)

    return MemberRecord(
        provider=identity.provider,
        provider_user_id=identity.provider_user_id,
        email=_text(acc.get("email"), field="email", subject=subject),
        name=_text(acc.get("name"), field="name", subject=subject),
        nickname=_text(profile.get("nickname"), field="nickname", subject=subject) or DEFAULT_NICKNAME,
        phone=_text(acc.get("phone_number"), field="phone_number", subject=subject),
        avatar_url=_text(profile.get("profile_image_url"), field="profile_image_url", subject=subject),
        gender=_text(acc.get("gender"), field="gender", subject=subject),
        age_range=_text(acc.get("age_range"), field="age_range", subject=subject),
        birthyear=birthyear,
        birthday=birthday,
        birthdate=derive_birthdate(birthyear, birthday, subject=subject),
    )


class MemberReconciler:
    """
    Keeps the local member record in step with Kakao.

    reconcile() always re-verifies the Kakao token: the internal credential
    carries the subject only, not the profile fields the row needs.
    """

    def __init__(self, verifier: KakaoVerifier, store: MemberStore):
        self._verifier = verifier
        self._store = store

    async def reconcile(self, access_token: Optional[str]) -> MemberRecord:
        identity = await self._verifier.verify(access_token, field="kakao_access_token")
        return await self.save(identity)

    async def save(self, identity: ExternalIdentity) -> MemberRecord:
        row = build_member_row(identity)
        returned = await self._store.upsert(row.key, row.model_dump())
        if len(returned) != 1:
            # read-back is a convenience; echo what we wrote
            log.info("store returned %d rows for %s; echoing computed row", len(returned), identity.subject)
            return row
        return MemberRecord.model_validate(returned[0])

    async def read(self, key: Tuple[str, str]) -> Optional[MemberRecord]:
        found: Optional[Dict[str, Any]] = await self._store.get(key)
        return MemberRecord.model_validate(found) if found is not None else None
