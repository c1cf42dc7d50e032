"""
models/meters.py — Pydantic model for the meters table.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel

from meterdata_shared.constants import CSV_TRUE


class Meter(BaseModel):
    """Matches the meters table row."""

    id: int | None = None
    name: str | None = None
    ip_address: str | None = None
    enabled: bool = False
    displayable: bool = False
    meter_type: str | None = None
    meter_timezone: str | None = None
    gps: str | None = None
    identifier: str | None = None

    @classmethod
    def from_csv_record(cls, record: Mapping[str, str]) -> "Meter":
        """
        Build a meter from a mapped CSV record.

        Only the literal "TRUE" enables the enabled/displayable flags.
        id and gps stay unset so the database assigns them.
        """
        return cls(
            name=record.get("name"),
            ip_address=record.get("ip_address"),
            enabled=record.get("enabled") == CSV_TRUE,
            displayable=record.get("displayable") == CSV_TRUE,
            meter_type=record.get("meter_type"),
            meter_timezone=record.get("meter_timezone"),
            identifier=record.get("identifier"),
        )

    def to_insert_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
