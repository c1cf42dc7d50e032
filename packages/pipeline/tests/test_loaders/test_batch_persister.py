"""
tests/test_loaders/test_batch_persister.py — Concurrent batch persistence.
"""

from __future__ import annotations

import pytest

from meterdata_shared.models import Meter
from meterdata_pipeline.errors import PersistenceError
from meterdata_pipeline.loaders.batch_persister import BatchPersister, BatchResult, RecordOutcome


def _records(n: int) -> list[dict[str, str]]:
    return [
        {"name": f"meter{i}", "enabled": "TRUE", "identifier": f"ext{i}"}
        for i in range(n)
    ]


class TestBatchResult:
    def test_status_values(self):
        assert BatchResult(table="t").status == "success"
        mixed = BatchResult(table="t", outcomes=[RecordOutcome(0), RecordOutcome(1, error="x")])
        assert mixed.status == "partial_failure"
        failed = BatchResult(table="t", outcomes=[RecordOutcome(0, error="x")])
        assert failed.status == "failure"

    def test_raise_for_failure_uses_first_error(self):
        result = BatchResult(
            table="t",
            outcomes=[RecordOutcome(0), RecordOutcome(1, error="first"), RecordOutcome(2, error="second")],
        )
        with pytest.raises(PersistenceError, match="^first$"):
            result.raise_for_failure()

    def test_raise_for_failure_noop_on_success(self):
        BatchResult(table="t", outcomes=[RecordOutcome(0)]).raise_for_failure()


class TestConcurrentPersist:
    @pytest.mark.asyncio
    async def test_all_records_inserted(self, make_repository):
        repo = make_repository("meters")
        result = await BatchPersister(repo).persist(_records(5), Meter.from_csv_record)

        assert result.success
        assert result.records_loaded == 5
        assert {m.identifier for m in repo.inserted} == {f"ext{i}" for i in range(5)}

    @pytest.mark.asyncio
    async def test_inserts_run_concurrently(self, make_repository):
        repo = make_repository("meters", delay=0.01)
        await BatchPersister(repo).persist(_records(6), Meter.from_csv_record)

        assert repo.peak_in_flight == 6

    @pytest.mark.asyncio
    async def test_failure_does_not_undo_siblings(self, make_repository):
        # ext2 fails immediately while its siblings are still sleeping.
        repo = make_repository(
            "meters",
            fail_when=lambda m: m.identifier == "ext2",
            delay=0.01,
        )
        result = await BatchPersister(repo).persist(_records(5), Meter.from_csv_record)

        assert not result.success
        assert result.status == "partial_failure"
        assert result.records_loaded == 4
        assert result.records_failed == 1
        assert [o.index for o in result.outcomes if not o.ok] == [2]
        assert sorted(m.identifier for m in repo.inserted) == ["ext0", "ext1", "ext3", "ext4"]
        with pytest.raises(PersistenceError, match="insert rejected"):
            result.raise_for_failure()

    @pytest.mark.asyncio
    async def test_outcomes_follow_record_order(self, make_repository):
        repo = make_repository("meters")
        result = await BatchPersister(repo).persist(_records(4), Meter.from_csv_record)

        assert [o.index for o in result.outcomes] == [0, 1, 2, 3]
        assert [o.entity.name for o in result.outcomes] == ["meter0", "meter1", "meter2", "meter3"]

    @pytest.mark.asyncio
    async def test_factory_error_fails_only_that_record(self, make_repository):
        repo = make_repository("meters")

        def factory(record):
            if record["name"] == "meter1":
                raise ValueError("bad row")
            return Meter.from_csv_record(record)

        result = await BatchPersister(repo).persist(_records(3), factory)

        assert result.records_failed == 1
        assert result.errors == ["bad row"]
        assert len(repo.inserted) == 2

    @pytest.mark.asyncio
    async def test_empty_batch_succeeds(self, make_repository):
        repo = make_repository("meters")
        result = await BatchPersister(repo).persist([], Meter.from_csv_record)

        assert result.success
        assert result.records_loaded == 0
        assert result.table == "meters"
        assert repo.attempted == []

    @pytest.mark.asyncio
    async def test_max_concurrency_bounds_in_flight(self, make_repository):
        repo = make_repository("meters", delay=0.01)
        result = await BatchPersister(repo, max_concurrency=2).persist(
            _records(6), Meter.from_csv_record
        )

        assert result.records_loaded == 6
        assert repo.peak_in_flight <= 2


class TestAtomicPersist:
    @pytest.mark.asyncio
    async def test_single_bulk_call(self, make_repository):
        repo = make_repository("meters")
        result = await BatchPersister(repo, atomic=True).persist(_records(3), Meter.from_csv_record)

        assert result.success
        assert repo.bulk_calls == 1
        assert repo.attempted == []
        assert len(repo.inserted) == 3

    @pytest.mark.asyncio
    async def test_bulk_failure_fails_every_record(self, make_repository):
        repo = make_repository("meters", fail_when=lambda m: m.identifier == "ext1")
        result = await BatchPersister(repo, atomic=True).persist(_records(3), Meter.from_csv_record)

        assert result.status == "failure"
        assert result.records_failed == 3
        assert repo.inserted == []

    @pytest.mark.asyncio
    async def test_build_failure_skips_insert(self, make_repository):
        repo = make_repository("meters")

        def factory(record):
            if record["name"] == "meter2":
                raise ValueError("bad row")
            return Meter.from_csv_record(record)

        result = await BatchPersister(repo, atomic=True).persist(_records(3), factory)

        assert result.records_failed == 3
        assert result.errors[0] == "Record 3: bad row"
        assert repo.bulk_calls == 0
