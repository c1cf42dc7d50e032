"""
loaders/batch_persister.py — Concurrent batch persistence of mapped records.

All inserts of a batch are issued at once and awaited as a set. The batch
is not atomic: when one insert fails, siblings already in flight run to
completion and rows that were written stay written. A failed BatchResult
therefore means "some rows may be committed", never "no rows were
committed". Pass ``atomic=True`` to route the whole batch through the
repository's single-statement ``insert_many`` instead.

Usage:
    persister = BatchPersister(meter_repository())
    result = await persister.persist(records, Meter.from_csv_record)
    result.raise_for_failure()
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from meterdata_pipeline.errors import PersistenceError
from meterdata_pipeline.loaders.repositories import EntityRepository

log = structlog.get_logger(__name__)

EntityFactory = Callable[[Mapping[str, str]], Any]


@dataclass
class RecordOutcome:
    """Result of building and inserting one mapped record."""

    index: int
    entity: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """Summary of one persist() call."""

    table: str
    outcomes: list[RecordOutcome] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def records_loaded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def records_failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def errors(self) -> list[str]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def success(self) -> bool:
        return self.records_failed == 0

    @property
    def status(self) -> str:
        if self.records_failed == 0:
            return "success"
        if self.records_loaded > 0:
            return "partial_failure"
        return "failure"

    def raise_for_failure(self) -> None:
        """Raise PersistenceError carrying the first failure's message."""
        if self.success:
            return
        raise PersistenceError(self.errors[0])


class BatchPersister:
    def __init__(
        self,
        repository: EntityRepository,
        *,
        atomic: bool = False,
        max_concurrency: int | None = None,
    ) -> None:
        self._repository = repository
        self._atomic = atomic
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    @property
    def table(self) -> str:
        return getattr(self._repository, "table", type(self._repository).__name__)

    async def persist(
        self,
        records: Sequence[Mapping[str, str]],
        entity_factory: EntityFactory,
    ) -> BatchResult:
        """
        Build one entity per record and insert them all.

        A record whose entity cannot be built counts as a failed record.
        Never raises for individual failures; inspect the BatchResult or
        call ``raise_for_failure()``.
        """
        result = BatchResult(table=self.table)
        t0 = time.monotonic()

        if not records:
            log.warning("persist_empty_batch", table=result.table)
            return result

        batch_log = log.bind(table=result.table, total_rows=len(records), atomic=self._atomic)
        batch_log.info("persist_start")

        if self._atomic:
            result.outcomes = await self._persist_atomic(records, entity_factory)
        else:
            result.outcomes = list(
                await asyncio.gather(
                    *(
                        self._persist_one(index, record, entity_factory)
                        for index, record in enumerate(records)
                    )
                )
            )

        result.duration_ms = int((time.monotonic() - t0) * 1000)
        batch_log.info(
            "persist_complete",
            records_loaded=result.records_loaded,
            records_failed=result.records_failed,
            duration_ms=result.duration_ms,
            status=result.status,
        )
        return result

    async def _persist_one(
        self,
        index: int,
        record: Mapping[str, str],
        entity_factory: EntityFactory,
    ) -> RecordOutcome:
        try:
            entity = entity_factory(record)
        except Exception as exc:
            log.error("entity_build_failed", index=index, error=str(exc))
            return RecordOutcome(index=index, error=str(exc))

        try:
            if self._semaphore is not None:
                async with self._semaphore:
                    await self._repository.insert(entity)
            else:
                await self._repository.insert(entity)
        except Exception as exc:
            log.error("insert_failed", index=index, error=str(exc))
            return RecordOutcome(index=index, entity=entity, error=str(exc))
        return RecordOutcome(index=index, entity=entity)

    async def _persist_atomic(
        self,
        records: Sequence[Mapping[str, str]],
        entity_factory: EntityFactory,
    ) -> list[RecordOutcome]:
        entities: list[Any] = []
        for index, record in enumerate(records):
            try:
                entities.append(entity_factory(record))
            except Exception as exc:
                log.error("entity_build_failed", index=index, error=str(exc))
                message = f"Record {index + 1}: {exc}"
                return [RecordOutcome(index=i, error=message) for i in range(len(records))]

        try:
            await self._repository.insert_many(entities)
        except Exception as exc:
            log.error("bulk_insert_failed", rows=len(entities), error=str(exc))
            return [
                RecordOutcome(index=i, entity=e, error=str(exc))
                for i, e in enumerate(entities)
            ]
        return [RecordOutcome(index=i, entity=e) for i, e in enumerate(entities)]
