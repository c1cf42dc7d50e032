"""
ingest/decoder.py — Optional gzip decompression of the uploaded payload.
"""

from __future__ import annotations

import gzip
import zlib

from meterdata_pipeline.errors import DecompressionError


def decode_payload(payload: bytes, compressed: bool) -> bytes:
    """
    Return the raw CSV bytes.

    Args:
        payload:    Bytes as received from the upload.
        compressed: True when the uploader set gzip=true.

    Raises:
        DecompressionError: payload is flagged as compressed but is not a
                            complete, valid gzip stream.
    """
    if not compressed:
        return payload
    try:
        return gzip.decompress(payload)
    except (gzip.BadGzipFile, zlib.error, EOFError) as exc:
        raise DecompressionError(f"Invalid gzip payload: {exc}") from exc
