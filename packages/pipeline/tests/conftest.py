"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  fixture_path           — resolves paths to tests/fixtures/
  mock_supabase_client   — MagicMock of the Supabase client (prevents real DB calls)
  make_repository        — factory for in-memory repositories with failure hooks
  pipeline_factory       — CsvUploadPipeline wired to in-memory repositories
  mock_http              — configured respx router for faking HTTP responses
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import respx

from meterdata_shared.constants import EntityKind
from meterdata_pipeline.ingest.artifacts import ArtifactStore
from meterdata_pipeline.ingest.gatekeeper import SharedSecretPolicy, UploadGatekeeper
from meterdata_pipeline.ingest.pipeline import CsvUploadPipeline

FIXTURES_DIR = Path(__file__).parent / "fixtures"
UPLOAD_PASSWORD = "s3cret"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


# ---------------------------------------------------------------------------
# Supabase client mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """
    A MagicMock that simulates the supabase.Client interface.

    The .table().insert().execute() chain returns empty data by default.
    Override in individual tests: mock_supabase_client.table.return_value...
    """
    client = MagicMock()

    default_result = MagicMock()
    default_result.data = []
    default_result.count = 0

    (
        client.table.return_value
        .insert.return_value
        .execute.return_value
    ) = default_result

    return client


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------

class FakeRepository:
    """
    Records inserted entities. ``fail_when`` decides per entity whether the
    insert raises; ``delay`` makes successful inserts yield to the loop first.
    """

    def __init__(
        self,
        table: str = "meters",
        *,
        fail_when: Callable[[Any], bool] | None = None,
        delay: float = 0.0,
        unique_field: str | None = None,
    ) -> None:
        self.table = table
        self.inserted: list[Any] = []
        self.attempted: list[Any] = []
        self.bulk_calls = 0
        self._fail_when = fail_when
        self._delay = delay
        self._unique_field = unique_field
        self.in_flight = 0
        self.peak_in_flight = 0

    async def insert(self, entity: Any) -> None:
        self.attempted.append(entity)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self._fail_when is not None and self._fail_when(entity):
                raise RuntimeError(f"insert rejected for {entity!r}")
            await asyncio.sleep(self._delay)
            if self._unique_field is not None:
                value = getattr(entity, self._unique_field)
                if any(getattr(e, self._unique_field) == value for e in self.inserted):
                    raise RuntimeError(
                        f'duplicate key value violates unique constraint "{self.table}_{self._unique_field}_key"'
                    )
            self.inserted.append(entity)
        finally:
            self.in_flight -= 1

    async def insert_many(self, entities: list[Any]) -> None:
        self.bulk_calls += 1
        if self._fail_when is not None and any(self._fail_when(e) for e in entities):
            raise RuntimeError("bulk insert rejected")
        self.inserted.extend(entities)


@pytest.fixture
def make_repository() -> Callable[..., FakeRepository]:
    return FakeRepository


@pytest.fixture
def pipeline_factory(tmp_path: Path) -> Callable[..., CsvUploadPipeline]:
    """
    Build a pipeline whose artifacts land in tmp_path/uploads.

    Usage:
        pipeline = pipeline_factory(meters=FakeRepository(unique_field="identifier"))
    """

    def _build(
        *,
        meters: Any = None,
        readings: Any = None,
        artifacts: ArtifactStore | None = None,
        **options: Any,
    ) -> CsvUploadPipeline:
        return CsvUploadPipeline(
            gatekeeper=UploadGatekeeper(SharedSecretPolicy(UPLOAD_PASSWORD)),
            artifacts=artifacts or ArtifactStore(tmp_path / "uploads"),
            repositories={
                EntityKind.METERS: meters if meters is not None else FakeRepository("meters"),
                EntityKind.READINGS: readings if readings is not None else FakeRepository("readings"),
            },
            **options,
        )

    return _build


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.post("https://...").mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
