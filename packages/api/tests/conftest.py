"""Shared test fixtures for meterdata-api."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from meterdata_shared.constants import EntityKind
from meterdata_pipeline.ingest.artifacts import ArtifactStore
from meterdata_pipeline.ingest.gatekeeper import SharedSecretPolicy, UploadGatekeeper
from meterdata_pipeline.ingest.pipeline import CsvUploadPipeline

UPLOAD_PASSWORD = "s3cret"


class MemoryRepository:
    """Stores entities in a list; rejects a repeated ``identifier`` like a unique index."""

    def __init__(self, table: str) -> None:
        self.table = table
        self.inserted: list[Any] = []

    async def insert(self, entity: Any) -> None:
        await asyncio.sleep(0)
        identifier = getattr(entity, "identifier", None)
        if identifier is not None and any(
            getattr(e, "identifier", None) == identifier for e in self.inserted
        ):
            raise RuntimeError(
                f'duplicate key value violates unique constraint "{self.table}_identifier_key"'
            )
        self.inserted.append(entity)

    async def insert_many(self, entities: list[Any]) -> None:
        self.inserted.extend(entities)


@pytest.fixture()
def repositories() -> dict[EntityKind, MemoryRepository]:
    return {
        EntityKind.METERS: MemoryRepository("meters"),
        EntityKind.READINGS: MemoryRepository("readings"),
    }


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def app(repositories, upload_dir):
    """Create test FastAPI app with an in-memory pipeline."""
    from meterdata_api.app import create_app
    from meterdata_api.dependencies import get_csv_pipeline

    application = create_app()
    pipeline = CsvUploadPipeline(
        gatekeeper=UploadGatekeeper(SharedSecretPolicy(UPLOAD_PASSWORD)),
        artifacts=ArtifactStore(upload_dir),
        repositories=repositories,
    )
    application.dependency_overrides[get_csv_pipeline] = lambda: pipeline
    return application


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)
