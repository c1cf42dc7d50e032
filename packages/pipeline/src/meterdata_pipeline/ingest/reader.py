"""
ingest/reader.py — Split a CSV artifact into ordered rows of string fields.

There is no quoting or escaping: every delimiter is a field boundary, so a
field cannot contain the delimiter. The decoded text is cut into lines,
loaded into polars as a single String series and split on the delimiter,
which keeps every row's own field count (ragged rows are passed through
untouched for the mapper to judge).

Rows remember the 1-based line they came from, so blank lines that are
skipped do not shift the line numbers reported in later errors.
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
import structlog

from meterdata_pipeline.errors import ParseError

log = structlog.get_logger(__name__)

ParsedRow = list[str]
NumberedRow = tuple[int, ParsedRow]

_LINE = "line"
_LINE_NO = "line_no"
_FIELDS = "fields"
_BOM = "\ufeff"


def _load_text(source: Path | str | bytes) -> str:
    if isinstance(source, bytes):
        data = source
    else:
        try:
            data = Path(source).read_bytes()
        except OSError as exc:
            raise ParseError(f"Unable to read CSV data: {exc}") from exc
    try:
        return data.decode("utf-8").removeprefix(_BOM)
    except UnicodeDecodeError as exc:
        raise ParseError(f"Unable to read CSV data: {exc}") from exc


def read_numbered_rows(
    source: Path | str | bytes, *, delimiter: str = ","
) -> list[NumberedRow]:
    """
    Read CSV data eagerly into ``(line_number, fields)`` pairs, in file order.

    Blank lines are skipped and a trailing carriage return is stripped from
    each line, so both LF and CRLF files parse the same way.

    Args:
        source:    Path to the decoded CSV artifact, or the decoded bytes.
        delimiter: Single-character field delimiter.

    Raises:
        ParseError: the file is missing, unreadable, or not valid UTF-8.
    """
    text = _load_text(source)
    if not text:
        log.debug("csv_empty")
        return []

    df = (
        pl.Series(_LINE, text.split("\n"), dtype=pl.String)
        .to_frame()
        .with_row_index(_LINE_NO, offset=1)
        .lazy()
        .with_columns(pl.col(_LINE).str.strip_chars_end("\r"))
        .filter(pl.col(_LINE) != "")
        .select(
            pl.col(_LINE_NO),
            pl.col(_LINE).str.split(delimiter).alias(_FIELDS),
        )
        .collect()
    )
    rows: list[NumberedRow] = list(
        zip(df.get_column(_LINE_NO).to_list(), df.get_column(_FIELDS).to_list())
    )
    log.debug("csv_rows_read", rows=len(rows))
    return rows


def read_rows(source: Path | str | bytes, *, delimiter: str = ",") -> list[ParsedRow]:
    """Like ``read_numbered_rows`` without the line numbers."""
    return [fields for _, fields in read_numbered_rows(source, delimiter=delimiter)]
