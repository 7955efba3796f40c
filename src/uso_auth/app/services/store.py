"""Backing stores for member records.

Every backend implements the same two calls keyed by the natural key
(provider, provider_user_id):

- upsert(key, row): insert-or-overwrite, returns the rows the store reports back
- get(key): the stored row or None

Backends:
- Supabase (PostgREST) with the service-role key
- SQL through SQLAlchemy async (PostgreSQL, SQLite)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import httpx
from fastapi.concurrency import run_in_threadpool
from postgrest.exceptions import APIError
from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from uso_auth.app.core.config import Settings
from uso_auth.app.core.errors import ConfigError, StoreError

if TYPE_CHECKING:
    from supabase import Client

log = logging.getLogger(__name__)

MemberKey = Tuple[str, str]
Row = Dict[str, Any]

KEY_COLUMNS = ("provider", "provider_user_id")


class MemberStore(ABC):
    """Abstract member store."""

    async def startup(self) -> None:
        """Prepare the backend (connect, create schema). Default: nothing."""

    async def close(self) -> None:
        """Release backend resources. Default: nothing."""

    @abstractmethod
    async def upsert(self, key: MemberKey, row: Row) -> List[Row]:
        ...

    @abstractmethod
    async def get(self, key: MemberKey) -> Optional[Row]:
        ...


def _keyed(key: MemberKey, row: Row) -> Row:
    # the key is authoritative; never let the payload move a row to another key
    return {**row, "provider": key[0], "provider_user_id": key[1]}


# ------------------------
# Supabase
# ------------------------
class SupabaseMemberStore(MemberStore):
    def __init__(self, client: "Client", table: str = "members"):
        self._client = client
        self._table = table

    def _upsert_sync(self, row: Row) -> List[Row]:
        resp = (
            self._client.table(self._table)
            .upsert(row, on_conflict=",".join(KEY_COLUMNS))
            .execute()
        )
        return list(resp.data or [])

    def _get_sync(self, key: MemberKey) -> List[Row]:
        resp = (
            self._client.table(self._table)
            .select("*")
            .eq("provider", key[0])
            .eq("provider_user_id", key[1])
            .limit(1)
            .execute()
        )
        return list(resp.data or [])

    async def upsert(self, key: MemberKey, row: Row) -> List[Row]:
        try:
            return await run_in_threadpool(self._upsert_sync, _keyed(key, row))
        except APIError as ex:
            raise StoreError(detail=ex.message or str(ex)) from ex
        except httpx.HTTPError as ex:
            raise StoreError(detail=str(ex)) from ex

    async def get(self, key: MemberKey) -> Optional[Row]:
        try:
            rows = await run_in_threadpool(self._get_sync, key)
        except APIError as ex:
            raise StoreError(detail=ex.message or str(ex)) from ex
        except httpx.HTTPError as ex:
            raise StoreError(detail=str(ex)) from ex
        return rows[0] if rows else None


def create_supabase_store(settings: Settings) -> SupabaseMemberStore:
    from supabase import ClientOptions, create_client

    client = create_client(
        settings.supabase_url,
        settings.supabase_service_role,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
    return SupabaseMemberStore(client, table=settings.supabase_members_table)


# ------------------------
# SQL (SQLAlchemy async)
# ------------------------
metadata = MetaData()

members = Table(
    "members",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("provider", String(32), nullable=False),
    Column("provider_user_id", String(64), nullable=False),
    Column("email", String(320)),
    Column("name", String(255)),
    Column("nickname", String(255), nullable=False),
    Column("phone", String(64)),
    Column("avatar_url", Text),
    Column("gender", String(16)),
    Column("age_range", String(32)),
    Column("birthyear", Integer),
    Column("birthday", String(8)),
    Column("birthdate", String(10)),
    UniqueConstraint(*KEY_COLUMNS, name="uq_members_provider_user"),
)

_WRITABLE = [c.name for c in members.columns if c.name != "id"]


def _insert_for(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ConfigError([f"DATABASE_URL (no upsert support for dialect {dialect!r})"])
    return insert


def _sql_error(ex: SQLAlchemyError) -> StoreError:
    orig = getattr(ex, "orig", None)
    return StoreError(detail=str(orig) if orig is not None else str(ex))


class SqlMemberStore(MemberStore):
    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._insert = _insert_for(engine.dialect.name)

    async def startup(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as ex:
            raise _sql_error(ex) from ex

    async def close(self) -> None:
        await self._engine.dispose()

    async def upsert(self, key: MemberKey, row: Row) -> List[Row]:
        values = {c: v for c, v in _keyed(key, row).items() if c in _WRITABLE}
        stmt = self._insert(members).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(KEY_COLUMNS),
            set_={c: stmt.excluded[c] for c in values if c not in KEY_COLUMNS},
        ).returning(*members.c)
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return [dict(r._mapping) for r in result]
        except SQLAlchemyError as ex:
            raise _sql_error(ex) from ex

    async def get(self, key: MemberKey) -> Optional[Row]:
        stmt = (
            select(members)
            .where(members.c.provider == key[0], members.c.provider_user_id == key[1])
            .limit(1)
        )
        try:
            async with self._engine.connect() as conn:
                r = (await conn.execute(stmt)).first()
        except SQLAlchemyError as ex:
            raise _sql_error(ex) from ex
        return dict(r._mapping) if r is not None else None


def create_sql_store(settings: Settings) -> SqlMemberStore:
    return SqlMemberStore(create_async_engine(settings.database_url))


def create_store(settings: Settings) -> MemberStore:
    if settings.store_backend == "sql":
        return create_sql_store(settings)
    return create_supabase_store(settings)
