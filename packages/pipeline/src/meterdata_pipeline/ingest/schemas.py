"""
ingest/schemas.py — Ordered CSV column layouts per entity kind.

CSV columns are mapped by position, so the order of ``fields`` is the
contract with uploaders. Bump ``version`` when the layout changes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from meterdata_shared.constants import EntityKind
from meterdata_shared.models import Meter, Reading


@dataclass(frozen=True)
class CsvSchema:
    kind: EntityKind
    version: int
    fields: tuple[str, ...]
    entity_factory: Callable[[Mapping[str, str]], Any]

    @property
    def width(self) -> int:
        return len(self.fields)


METER_SCHEMA = CsvSchema(
    kind=EntityKind.METERS,
    version=1,
    fields=(
        "name",
        "ip_address",
        "enabled",
        "displayable",
        "meter_type",
        "meter_timezone",
        "identifier",
    ),
    entity_factory=Meter.from_csv_record,
)

READING_SCHEMA = CsvSchema(
    kind=EntityKind.READINGS,
    version=1,
    fields=("meter_id", "reading", "start_timestamp", "end_timestamp"),
    entity_factory=Reading.from_csv_record,
)

SCHEMAS: dict[EntityKind, CsvSchema] = {
    EntityKind.METERS: METER_SCHEMA,
    EntityKind.READINGS: READING_SCHEMA,
}


def get_schema(kind: EntityKind | str) -> CsvSchema:
    """Return the current CSV schema for an entity kind."""
    return SCHEMAS[EntityKind(kind)]
