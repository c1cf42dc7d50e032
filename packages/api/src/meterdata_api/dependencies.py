"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from meterdata_shared.config import settings
from meterdata_pipeline.ingest.pipeline import CsvUploadPipeline, build_pipeline


@lru_cache(maxsize=1)
def get_csv_pipeline() -> CsvUploadPipeline:
    """Build and cache the upload pipeline with env-driven settings."""
    return build_pipeline(settings)


__all__ = [
    "CsvUploadPipeline",
    "get_csv_pipeline",
]
