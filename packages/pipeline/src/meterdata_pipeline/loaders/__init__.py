"""
meterdata_pipeline.loaders — persistence for mapped CSV records.

  SupabaseRepository — inserts one entity or a bulk list into a table
  BatchPersister     — concurrent fan-out of inserts with per-record outcomes
"""

from meterdata_pipeline.loaders.batch_persister import BatchPersister, BatchResult, RecordOutcome
from meterdata_pipeline.loaders.repositories import (
    EntityRepository,
    SupabaseRepository,
    meter_repository,
    reading_repository,
)

__all__ = [
    "BatchPersister",
    "BatchResult",
    "RecordOutcome",
    "EntityRepository",
    "SupabaseRepository",
    "meter_repository",
    "reading_repository",
]
