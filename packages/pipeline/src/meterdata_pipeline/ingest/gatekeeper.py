"""
ingest/gatekeeper.py — Upload authorization.

The gatekeeper runs before any payload work. It delegates the password
check to an injected PasswordPolicy so the verification backend can be a
local shared secret or a remote service.

Usage:
    gatekeeper = UploadGatekeeper(SharedSecretPolicy("s3cret"))
    await gatekeeper.authorize(password, file_present=True)  # raises on reject
"""

from __future__ import annotations

import hmac
from typing import Protocol, runtime_checkable

import httpx
import structlog

from meterdata_shared.config import Settings
from meterdata_pipeline.errors import AuthError, InvalidParameterError, MissingFileError
from meterdata_pipeline.utils.retry import with_retry

log = structlog.get_logger(__name__)

INVALID_PASSWORD_MESSAGE = "Submitted password is invalid."
MISSING_FILE_MESSAGE = (
    "No csv file was uploaded. A csv file must be submitted via the csvfile parameter."
)


@runtime_checkable
class PasswordPolicy(Protocol):
    async def verify(self, password: str) -> bool: ...


class SharedSecretPolicy:
    """Accepts exactly one process-wide secret."""

    def __init__(self, secret: str) -> None:
        self._secret = secret.encode("utf-8")

    async def verify(self, password: str) -> bool:
        if not self._secret:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self._secret)


class RemotePasswordPolicy:
    """
    Verifies passwords against an external HTTP backend.

    The backend receives ``{"password": ...}`` as JSON and answers
    ``{"valid": true|false}``. Transport errors are retried; any other
    failure (non-2xx, malformed body) counts as a rejection.
    """

    def __init__(self, verify_url: str, *, timeout: float = 5.0) -> None:
        self._verify_url = verify_url
        self._timeout = timeout

    async def verify(self, password: str) -> bool:
        try:
            payload = await self._post(password)
        except httpx.HTTPError as exc:
            log.warning("password_verify_failed", url=self._verify_url, error=str(exc))
            return False
        return isinstance(payload, dict) and payload.get("valid") is True

    @with_retry(max_attempts=3, base_delay=0.5, retry_on=(httpx.TransportError,))
    async def _post(self, password: str) -> object:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._verify_url, json={"password": password})
            response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            return None


def build_password_policy(settings: Settings) -> PasswordPolicy:
    """Select the configured verification backend."""
    if settings.csv_password_verify_url:
        return RemotePasswordPolicy(settings.csv_password_verify_url)
    return SharedSecretPolicy(settings.csv_upload_password.get_secret_value())


class UploadGatekeeper:
    def __init__(self, policy: PasswordPolicy) -> None:
        self._policy = policy

    async def authorize(self, password: str | None, *, file_present: bool) -> None:
        """
        Reject unauthenticated or empty requests.

        Raises:
            AuthError:        password missing or not accepted by the policy.
            MissingFileError: no file payload accompanied the request.
        """
        if not password or not await self._policy.verify(password):
            log.info("upload_rejected", reason="invalid_password")
            raise AuthError(INVALID_PASSWORD_MESSAGE)
        if not file_present:
            log.info("upload_rejected", reason="missing_file")
            raise MissingFileError(MISSING_FILE_MESSAGE)


_FORM_FLAGS = {"true": True, "false": False}


def parse_form_flag(name: str, value: bool | str) -> bool:
    """
    Resolve an upload flag sent as the form string "true" or "false".

    The pipeline calls this after ``authorize``, so a bad password is
    reported ahead of a bad flag.

    Raises:
        InvalidParameterError: any other string.
    """
    if isinstance(value, bool):
        return value
    try:
        return _FORM_FLAGS[value]
    except KeyError:
        log.info("upload_rejected", reason="invalid_parameter", field=name)
        raise InvalidParameterError(
            f"Invalid upload parameters: {name}: expected 'true' or 'false', got {value!r}"
        ) from None
