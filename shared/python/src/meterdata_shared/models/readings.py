"""
models/readings.py — Pydantic model for the readings table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, model_validator


class Reading(BaseModel):
    """Matches the readings table row. Primary key is (meter_id, start_timestamp)."""

    meter_id: int
    reading: float
    start_timestamp: datetime
    end_timestamp: datetime

    @model_validator(mode="after")
    def check_interval(self) -> "Reading":
        if self.end_timestamp < self.start_timestamp:
            raise ValueError("end_timestamp must not precede start_timestamp")
        return self

    @classmethod
    def from_csv_record(cls, record: Mapping[str, str]) -> "Reading":
        """Build a reading from a mapped CSV record; values are coerced by pydantic."""
        return cls(**record)

    def to_insert_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
