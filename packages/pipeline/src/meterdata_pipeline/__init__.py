"""
meterdata_pipeline — CSV ingestion pipeline for meters and readings.

Architecture:
  ingest/   — gatekeeper, payload decoder, CSV reader, row mapper,
              temporary artifacts, and the pipeline orchestrator
  loaders/  — Supabase repositories and the concurrent batch persister
  utils/    — structlog configuration, exponential-backoff retry decorator

Quick start:
    import asyncio
    from meterdata_shared.constants import EntityKind
    from meterdata_pipeline.ingest.pipeline import UploadRequest, build_pipeline

    pipeline = build_pipeline()
    request = UploadRequest(
        kind=EntityKind.METERS,
        payload=open("meters.csv", "rb").read(),
        password="secret",
        has_header_row=True,
    )
    outcome = asyncio.run(pipeline.run(request))
    print(outcome.to_envelope())

CLI:
    meterdata-pipeline upload meters meters.csv --header-row
    meterdata-pipeline schema readings
"""

__version__ = "0.1.0"
