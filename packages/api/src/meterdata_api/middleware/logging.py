"""Structured request/response logging middleware.

Upload requests additionally carry the entity kind and the declared body
size, so slow or oversized CSV uploads can be picked out of the access log.
"""

from __future__ import annotations

import time
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from meterdata_shared.constants import EntityKind

logger = structlog.get_logger()

UPLOAD_PREFIX = "/api/csv/"


def upload_kind(path: str) -> EntityKind | None:
    """Return the entity kind for an upload path, or None for any other route."""
    if not path.startswith(UPLOAD_PREFIX):
        return None
    try:
        return EntityKind(path[len(UPLOAD_PREFIX):].rstrip("/"))
    except ValueError:
        return None


def _request_context(request: Request) -> dict[str, Any]:
    context: dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else None,
    }
    kind = upload_kind(request.url.path)
    if kind is not None:
        length = request.headers.get("content-length")
        context["upload_kind"] = kind.value
        context["content_length"] = int(length) if length and length.isdigit() else None
    return context


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.monotonic()
        log = logger.bind(**_request_context(request))

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
            raise

        log.info(
            "request_completed",
            status=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return response
