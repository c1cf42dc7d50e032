"""
ingest/mapper.py — Positional mapping of parsed rows onto schema fields.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import structlog

from meterdata_pipeline.errors import RowShapeError

log = structlog.get_logger(__name__)

MappedRecord = dict[str, str]
ColumnPolicy = Literal["truncate", "reject"]


def map_rows(
    rows: Sequence[Sequence[str]],
    fields: Sequence[str],
    *,
    has_header_row: bool,
    column_policy: ColumnPolicy = "truncate",
    line_numbers: Sequence[int] | None = None,
) -> list[MappedRecord]:
    """
    Zip each row onto ``fields`` by position.

    With the ``truncate`` policy extra columns are ignored and missing
    columns are left out of the record; mismatches are only counted and
    logged. With ``reject`` the first mismatched row raises.

    Args:
        rows:           Parsed rows in file order.
        fields:         Canonical field names in CSV column order.
        has_header_row: Drop the first row before mapping.
        column_policy:  "truncate" or "reject".
        line_numbers:   Source line of each row, used in errors. Rows are
                        numbered 1..n when omitted.

    Raises:
        RowShapeError: a row's width differs from the schema under "reject".
    """
    if line_numbers is None:
        line_numbers = range(1, len(rows) + 1)
    numbered = list(zip(line_numbers, rows))
    if has_header_row:
        numbered = numbered[1:]
    expected = len(fields)

    records: list[MappedRecord] = []
    mismatched = 0
    for row_number, row in numbered:
        if len(row) != expected:
            if column_policy == "reject":
                raise RowShapeError(row_number=row_number, expected=expected, actual=len(row))
            mismatched += 1
        records.append(dict(zip(fields, row)))

    if mismatched:
        log.warning(
            "csv_column_count_mismatch",
            rows=mismatched,
            expected=expected,
            policy=column_policy,
        )
    return records
