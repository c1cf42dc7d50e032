"""
CSV upload endpoints.

Both routes accept a multipart form with the CSV (optionally gzip'd) in
``csvfile`` plus ``password``, ``gzip`` and ``headerRow`` fields, and
answer with the upload envelope. The flags are passed through as sent and
validated by the pipeline once the password has been checked. Artifact
cleanup runs as a background task after the response is sent.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from meterdata_shared.constants import EntityKind
from meterdata_pipeline.ingest.pipeline import CsvUploadPipeline, UploadRequest

from meterdata_api.dependencies import get_csv_pipeline
from meterdata_api.responses import UPLOAD_RESPONSES

router = APIRouter(prefix="/api/csv", tags=["csv"])


async def _upload(
    kind: EntityKind,
    *,
    background_tasks: BackgroundTasks,
    csvfile: UploadFile | None,
    password: str | None,
    gzip: str,
    header_row: str,
    pipeline: CsvUploadPipeline,
) -> JSONResponse:
    payload = await csvfile.read() if csvfile is not None else None
    request = UploadRequest(
        kind=kind,
        payload=payload,
        password=password,
        is_compressed=gzip,
        has_header_row=header_row,
        filename=csvfile.filename if csvfile is not None else None,
    )
    outcome = await pipeline.run(request, defer=background_tasks.add_task)
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_envelope())


@router.post("/meters", responses=UPLOAD_RESPONSES)
async def upload_meters(
    background_tasks: BackgroundTasks,
    csvfile: UploadFile | None = File(None),
    password: str | None = Form(None),
    gzip: str = Form("false"),
    header_row: str = Form("false", alias="headerRow"),
    pipeline: CsvUploadPipeline = Depends(get_csv_pipeline),
) -> JSONResponse:
    """Upload meter definitions."""
    return await _upload(
        EntityKind.METERS,
        background_tasks=background_tasks,
        csvfile=csvfile,
        password=password,
        gzip=gzip,
        header_row=header_row,
        pipeline=pipeline,
    )


@router.post("/readings", responses=UPLOAD_RESPONSES)
async def upload_readings(
    background_tasks: BackgroundTasks,
    csvfile: UploadFile | None = File(None),
    password: str | None = Form(None),
    gzip: str = Form("false"),
    header_row: str = Form("false", alias="headerRow"),
    pipeline: CsvUploadPipeline = Depends(get_csv_pipeline),
) -> JSONResponse:
    """Upload meter readings."""
    return await _upload(
        EntityKind.READINGS,
        background_tasks=background_tasks,
        csvfile=csvfile,
        password=password,
        gzip=gzip,
        header_row=header_row,
        pipeline=pipeline,
    )
