"""
meterdata_shared.models — Pydantic models matching each database table.

The pipeline builds one model per mapped CSV record and writes it with:
  .from_csv_record(record: dict) -> Model
  .to_insert_dict() -> dict
"""

from meterdata_shared.models.meters import Meter
from meterdata_shared.models.readings import Reading

__all__ = [
    "Meter",
    "Reading",
]
