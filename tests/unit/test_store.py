import httpx
import pytest
from postgrest.exceptions import APIError

from uso_auth.app.core.errors import StoreError
from uso_auth.app.services.store import SupabaseMemberStore

KEY = ("kakao", "555")


def _row(**over):
    row = {
        "provider": "kakao", "provider_user_id": "555", "email": None, "name": None,
        "nickname": "Guest", "phone": None, "avatar_url": None, "gender": None,
        "age_range": None, "birthyear": None, "birthday": None, "birthdate": None,
    }
    row.update(over)
    return row


# ------------------------
# SQL backend (SQLite)
# ------------------------
@pytest.mark.asyncio
async def test_sql_upsert_is_idempotent(sql_store):
    await sql_store.startup()
    try:
        first = await sql_store.upsert(KEY, _row(email="a@example.com"))
        second = await sql_store.upsert(KEY, _row(email="a@example.com"))
        assert len(first) == len(second) == 1
        assert first[0] == second[0]
        assert first[0]["email"] == "a@example.com"
    finally:
        await sql_store.close()


@pytest.mark.asyncio
async def test_sql_upsert_overwrites_fields(sql_store):
    await sql_store.startup()
    try:
        await sql_store.upsert(KEY, _row(nickname="old", email="a@example.com"))
        (after,) = await sql_store.upsert(KEY, _row(nickname="new"))
        assert after["nickname"] == "new"
        assert after["email"] is None  # last write wins per field

        got = await sql_store.get(KEY)
        assert got["nickname"] == "new"
        assert got["id"] == after["id"]
    finally:
        await sql_store.close()


@pytest.mark.asyncio
async def test_sql_get_missing_is_none(sql_store):
    await sql_store.startup()
    try:
        assert await sql_store.get(("kakao", "nope")) is None
    finally:
        await sql_store.close()


@pytest.mark.asyncio
async def test_sql_key_wins_over_payload(sql_store):
    await sql_store.startup()
    try:
        (row,) = await sql_store.upsert(KEY, _row(provider_user_id="999"))
        assert row["provider_user_id"] == "555"
    finally:
        await sql_store.close()


@pytest.mark.asyncio
async def test_sql_failure_is_store_error(sql_store):
    # no startup(): the table does not exist
    with pytest.raises(StoreError) as exc:
        await sql_store.get(KEY)
    assert "members" in str(exc.value.detail)
    await sql_store.close()


# ------------------------
# Supabase backend (fake client)
# ------------------------
class _Resp:
    def __init__(self, data):
        self.data = data


class _Query:
    def __init__(self, client):
        self.client = client

    def upsert(self, row, on_conflict=None):
        self.client.log.append(("upsert", row, on_conflict))
        return self

    def select(self, cols):
        self.client.log.append(("select", cols))
        return self

    def eq(self, col, val):
        self.client.log.append(("eq", col, val))
        return self

    def limit(self, n):
        self.client.log.append(("limit", n))
        return self

    def execute(self):
        if self.client.error is not None:
            raise self.client.error
        return _Resp(self.client.data)


class FakeSupabase:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.log = []

    def table(self, name):
        self.log.append(("table", name))
        return _Query(self)


@pytest.mark.asyncio
async def test_supabase_upsert_uses_composite_conflict_key():
    fake = FakeSupabase(data=[_row(id=7)])
    rows = await SupabaseMemberStore(fake, table="members").upsert(KEY, _row())
    assert rows == [_row(id=7)]
    assert fake.log[0] == ("table", "members")
    assert fake.log[1][0] == "upsert"
    assert fake.log[1][2] == "provider,provider_user_id"


@pytest.mark.asyncio
async def test_supabase_get_filters_by_key():
    fake = FakeSupabase(data=[])
    assert await SupabaseMemberStore(fake).get(KEY) is None
    assert ("eq", "provider", "kakao") in fake.log
    assert ("eq", "provider_user_id", "555") in fake.log
    assert ("limit", 1) in fake.log


@pytest.mark.asyncio
async def test_supabase_api_error_becomes_store_error():
    err = APIError({"message": "permission denied for table members", "code": "42501"})
    store = SupabaseMemberStore(FakeSupabase(error=err))
    with pytest.raises(StoreError) as exc:
        await store.upsert(KEY, _row())
    assert exc.value.to_body() == {"error": "store_error", "detail": "permission denied for table members"}


@pytest.mark.asyncio
async def test_supabase_connect_error_becomes_store_error():
    store = SupabaseMemberStore(FakeSupabase(error=httpx.ConnectError("refused")))
    with pytest.raises(StoreError):
        await store.get(KEY)
