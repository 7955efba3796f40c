# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from uso_auth.app.core.config import KAKAO_USER_ME_URL, Settings
from uso_auth.app.core.trace import configure_trace
from uso_auth.app.main import create_app
from uso_auth.app.services.store import MemberStore, SqlMemberStore
from sqlalchemy.ext.asyncio import create_async_engine

SECRET = "test-secret-with-enough-bytes-for-hs256"


def kakao_profile(kakao_id: Any = 555, **account: Any) -> Dict[str, Any]:
    """A /v2/user/me body; keyword args land in kakao_account."""
    body: Dict[str, Any] = {"id": kakao_id}
    if account:
        body["kakao_account"] = account
    return body


class SpyStore(MemberStore):
    """Records calls; used where a test must prove the store is untouched."""

    def __init__(self):
        self.calls: List[str] = []

    async def upsert(self, key, row):
        self.calls.append("upsert")
        return [dict(row, id=1)]

    async def get(self, key):
        self.calls.append("get")
        return None


@pytest.fixture(autouse=True)
def _trace_off():
    # the trace switch is process-wide; never leak it between tests
    configure_trace(False)
    yield
    configure_trace(False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        jwt_secret=SECRET,
        store_backend="sql",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'members.db'}",
    )


@pytest.fixture
def sql_store(settings: Settings) -> SqlMemberStore:
    return SqlMemberStore(create_async_engine(settings.database_url))


@pytest.fixture
def client(settings: Settings, sql_store: SqlMemberStore) -> Iterator[TestClient]:
    # context manager runs the lifespan, which creates the members table
    with TestClient(create_app(settings, store=sql_store)) as c:
        yield c


@pytest.fixture
def spy_store() -> SpyStore:
    return SpyStore()


@pytest.fixture
def spy_client(settings: Settings, spy_store: SpyStore) -> Iterator[TestClient]:
    with TestClient(create_app(settings, store=spy_store)) as c:
        yield c


@pytest.fixture
def mock_kakao(httpx_mock):
    """Register one Kakao /v2/user/me answer per call."""
    def _add(body: Any = None, *, token: Optional[str] = None, status_code: int = 200, text: Optional[str] = None):
        kwargs: Dict[str, Any] = {"url": KAKAO_USER_ME_URL, "method": "GET", "status_code": status_code}
        if token is not None:
            kwargs["match_headers"] = {"Authorization": f"Bearer {token}"}
        if text is not None:
            kwargs["text"] = text
        else:
            kwargs["json"] = body if body is not None else kakao_profile()
        httpx_mock.add_response(**kwargs)
    return _add
