"""
loaders/repositories.py — Supabase-backed entity repositories.

The supabase client is synchronous, so each request runs in a worker
thread; concurrent inserts from one or many pipeline runs share the
client's connection pool without extra locking.

Usage:
    repo = meter_repository()
    await repo.insert(Meter(name="A", enabled=True))
    await repo.insert_many([...])   # single bulk statement
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import structlog
from supabase import Client

from meterdata_shared.constants import EntityKind
from meterdata_shared.db import get_supabase_client

log = structlog.get_logger(__name__)


@runtime_checkable
class EntityRepository(Protocol):
    async def insert(self, entity: Any) -> None: ...

    async def insert_many(self, entities: Sequence[Any]) -> None: ...


class SupabaseRepository:
    """Writes entities exposing ``to_insert_dict()`` into one table."""

    def __init__(self, table: str, client: Client | None = None) -> None:
        self.table = table
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def insert(self, entity: Any) -> None:
        row = entity.to_insert_dict()
        query = self.client.table(self.table).insert(row)
        await asyncio.to_thread(query.execute)

    async def insert_many(self, entities: Sequence[Any]) -> None:
        """Insert all rows in one request; PostgREST applies it as one statement."""
        if not entities:
            return
        rows = [entity.to_insert_dict() for entity in entities]
        query = self.client.table(self.table).insert(rows)
        await asyncio.to_thread(query.execute)
        log.debug("bulk_insert_complete", table=self.table, rows=len(rows))


def meter_repository(client: Client | None = None) -> SupabaseRepository:
    return SupabaseRepository(EntityKind.METERS.value, client)


def reading_repository(client: Client | None = None) -> SupabaseRepository:
    return SupabaseRepository(EntityKind.READINGS.value, client)
