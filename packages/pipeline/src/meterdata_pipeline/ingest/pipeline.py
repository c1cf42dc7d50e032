"""
ingest/pipeline.py — CSV upload pipeline orchestrator.

One run per upload request, executed strictly in stage order:

    authenticating -> decoding -> parsing -> mapping -> persisting
                   -> succeeded | failed | rejected

Gate rejections are reported with their own message and happen before any
payload work. Every later failure is caught at the single boundary in
``run()``, wrapped into a PipelineError, and reported uniformly. The
temporary artifact is released on every exit path once it exists.

Usage:
    pipeline = build_pipeline()
    outcome = await pipeline.run(request)
    outcome.to_envelope()  # {"status": "success", "message": ...}
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from meterdata_shared.config import Settings, settings as default_settings
from meterdata_shared.constants import EntityKind
from meterdata_pipeline.errors import AuthError, GateError, PipelineError
from meterdata_pipeline.ingest.artifacts import ArtifactStore, DeferRelease
from meterdata_pipeline.ingest.decoder import decode_payload
from meterdata_pipeline.ingest.gatekeeper import (
    UploadGatekeeper,
    build_password_policy,
    parse_form_flag,
)
from meterdata_pipeline.ingest.mapper import ColumnPolicy, map_rows
from meterdata_pipeline.ingest.reader import read_numbered_rows
from meterdata_pipeline.ingest.schemas import CsvSchema, get_schema
from meterdata_pipeline.loaders.batch_persister import BatchPersister, BatchResult
from meterdata_pipeline.loaders.repositories import (
    EntityRepository,
    meter_repository,
    reading_repository,
)
from meterdata_pipeline.utils.logging import get_logger

class PipelineStage(str, Enum):
    AUTHENTICATING = "authenticating"
    DECODING = "decoding"
    PARSING = "parsing"
    MAPPING = "mapping"
    PERSISTING = "persisting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass
class UploadRequest:
    kind: EntityKind
    payload: bytes | None
    password: str | None
    # bool, or the raw "true"/"false" form string from the HTTP layer
    is_compressed: bool | str = False
    has_header_row: bool | str = False
    filename: str | None = None


@dataclass
class PipelineOutcome:
    """The single success-or-failure result of one run."""

    kind: EntityKind
    stage: PipelineStage
    message: str | None = None
    error: str | None = None
    failed_stage: PipelineStage | None = None
    batch: BatchResult | None = None
    status_code: int = 200

    @property
    def success(self) -> bool:
        return self.stage is PipelineStage.SUCCEEDED

    def to_envelope(self) -> dict[str, Any]:
        if self.success:
            return {"status": "success", "message": self.message}
        return {"status": "failure", "error": self.error}


def success_message(kind: EntityKind) -> str:
    return f"Successfully inserted the {kind.value}."


def failure_message(kind: EntityKind, cause: BaseException) -> str:
    return f"Failed to upload {kind.value} due to internal error: {cause}"


class CsvUploadPipeline:
    def __init__(
        self,
        *,
        gatekeeper: UploadGatekeeper,
        artifacts: ArtifactStore,
        repositories: Mapping[EntityKind, EntityRepository],
        delimiter: str = ",",
        column_policy: ColumnPolicy = "truncate",
        atomic: bool = False,
        max_concurrency: int | None = None,
    ) -> None:
        self._gatekeeper = gatekeeper
        self._artifacts = artifacts
        self._repositories = dict(repositories)
        self._delimiter = delimiter
        self._column_policy = column_policy
        self._atomic = atomic
        self._max_concurrency = max_concurrency

    async def run(
        self,
        request: UploadRequest,
        *,
        defer: DeferRelease | None = None,
    ) -> PipelineOutcome:
        """
        Execute one upload end to end. Never raises.

        Args:
            request: The upload to ingest.
            defer:   Optional scheduler for artifact release, called as
                     ``defer(release, path)``; release is awaited inline
                     when omitted.
        """
        kind = EntityKind(request.kind)
        run_log = get_logger(__name__, kind=kind.value, filename=request.filename)
        run_log.info(
            "csv_upload_start",
            compressed=request.is_compressed,
            header_row=request.has_header_row,
            bytes=len(request.payload) if request.payload is not None else None,
        )

        try:
            await self._gatekeeper.authorize(
                request.password,
                file_present=request.payload is not None,
            )
            compressed = parse_form_flag("gzip", request.is_compressed)
            has_header_row = parse_form_flag("headerRow", request.has_header_row)
        except GateError as exc:
            return PipelineOutcome(
                kind=kind,
                stage=PipelineStage.REJECTED,
                error=str(exc),
                failed_stage=PipelineStage.AUTHENTICATING,
                status_code=401 if isinstance(exc, AuthError) else 400,
            )

        schema = get_schema(kind)
        stage = PipelineStage.DECODING
        batch: BatchResult | None = None
        try:
            decoded = decode_payload(request.payload or b"", compressed)

            async with self._artifacts.scoped(decoded, kind, defer=defer) as path:
                stage = PipelineStage.PARSING
                numbered = await asyncio.to_thread(
                    read_numbered_rows, path, delimiter=self._delimiter
                )
                run_log.info("csv_rows_parsed", rows=len(numbered))

                stage = PipelineStage.MAPPING
                records = map_rows(
                    [fields for _, fields in numbered],
                    schema.fields,
                    has_header_row=has_header_row,
                    line_numbers=[line for line, _ in numbered],
                    column_policy=self._column_policy,
                )

                stage = PipelineStage.PERSISTING
                batch = await self._persister(schema).persist(records, schema.entity_factory)
                batch.raise_for_failure()
        except Exception as exc:
            wrapped = PipelineError(failure_message(kind, exc))
            run_log.error(
                "csv_upload_failed",
                stage=stage.value,
                error=str(exc),
                error_type=type(exc).__name__,
                records_loaded=batch.records_loaded if batch else None,
            )
            return PipelineOutcome(
                kind=kind,
                stage=PipelineStage.FAILED,
                error=str(wrapped),
                failed_stage=stage,
                batch=batch,
                status_code=500,
            )

        run_log.info("csv_upload_succeeded", records_loaded=batch.records_loaded)
        return PipelineOutcome(
            kind=kind,
            stage=PipelineStage.SUCCEEDED,
            message=success_message(kind),
            batch=batch,
        )

    def _persister(self, schema: CsvSchema) -> BatchPersister:
        return BatchPersister(
            self._repositories[schema.kind],
            atomic=self._atomic,
            max_concurrency=self._max_concurrency,
        )


def build_pipeline(
    config: Settings | None = None,
    *,
    repositories: Mapping[EntityKind, EntityRepository] | None = None,
) -> CsvUploadPipeline:
    """Wire a pipeline from settings; Supabase repositories by default."""
    config = config or default_settings
    if repositories is None:
        repositories = {
            EntityKind.METERS: meter_repository(),
            EntityKind.READINGS: reading_repository(),
        }
    return CsvUploadPipeline(
        gatekeeper=UploadGatekeeper(build_password_policy(config)),
        artifacts=ArtifactStore(config.csv_upload_dir),
        repositories=repositories,
        delimiter=config.csv_delimiter,
        column_policy=config.csv_column_policy,
        atomic=config.csv_atomic_batches,
        max_concurrency=config.csv_max_concurrency,
    )
