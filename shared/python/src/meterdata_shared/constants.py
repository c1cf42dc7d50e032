"""
constants.py — Entity kinds and fixed values shared by pipeline and API.
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):
    """Domain record type being ingested; doubles as route segment and table name."""

    METERS = "meters"
    READINGS = "readings"

    def __str__(self) -> str:
        return self.value


# Literal flag value that maps to True for meter enabled/displayable columns.
CSV_TRUE = "TRUE"
