"""Upload response envelope."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class UploadSuccess(BaseModel):
    status: Literal["success"] = "success"
    message: str


class UploadFailure(BaseModel):
    status: Literal["failure"] = "failure"
    error: str


def failure_response(error: str) -> dict[str, Any]:
    """Build a failure envelope dict."""
    return UploadFailure(error=error).model_dump()


UPLOAD_RESPONSES: dict[int | str, dict[str, Any]] = {
    200: {"model": UploadSuccess},
    400: {"model": UploadFailure, "description": "Missing file or invalid form values"},
    401: {"model": UploadFailure, "description": "Invalid password"},
    500: {"model": UploadFailure, "description": "Upload failed; some rows may be stored"},
}
