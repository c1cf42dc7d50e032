"""
errors.py — Exception taxonomy for the CSV ingestion pipeline.

Gate errors (AuthError, MissingFileError, InvalidParameterError) are reported
to the caller as-is.
Stage errors raised after gating are caught at the pipeline boundary and
re-wrapped into a single PipelineError.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for all ingestion failures."""


# ---------------------------------------------------------------------------
# Gate errors
# ---------------------------------------------------------------------------

class GateError(IngestionError):
    """Raised by the upload gatekeeper before any payload work starts."""


class AuthError(GateError):
    """The submitted password did not verify."""


class MissingFileError(GateError):
    """No file payload accompanied the request."""


class InvalidParameterError(GateError):
    """A form flag held something other than "true" or "false"."""


# ---------------------------------------------------------------------------
# Stage errors
# ---------------------------------------------------------------------------

class DecompressionError(IngestionError):
    """The payload was flagged as compressed but is not a valid gzip stream."""


class ParseError(IngestionError):
    """The decoded payload could not be read as CSV."""


class RowShapeError(ParseError):
    """A row's column count differs from the schema under the reject policy."""

    def __init__(self, *, row_number: int, expected: int, actual: int) -> None:
        super().__init__(
            f"Row {row_number} has {actual} columns; expected {expected}."
        )
        self.row_number = row_number
        self.expected = expected
        self.actual = actual


class PersistenceError(IngestionError):
    """One or more entity inserts failed."""


class PipelineError(IngestionError):
    """Single wrapped failure reported for any post-gate stage error."""
