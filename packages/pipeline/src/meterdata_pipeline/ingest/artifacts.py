"""
ingest/artifacts.py — Temporary on-disk copy of a decoded upload.

Each pipeline run owns one artifact. ``scoped()`` guarantees exactly one
release attempt on every exit path; release failures are logged and
never raised. When a ``defer`` scheduler is given (FastAPI's
``BackgroundTasks.add_task``) the release runs after the response has
been sent instead of being awaited.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog

from meterdata_shared.constants import EntityKind

log = structlog.get_logger(__name__)

DeferRelease = Callable[..., Any]


class ArtifactStore:
    def __init__(self, directory: str | Path | None = None) -> None:
        self._directory = Path(directory) if directory else None

    async def create(self, payload: bytes, kind: EntityKind) -> Path:
        """Write ``payload`` to a new file named after the entity kind."""
        return await asyncio.to_thread(self._write, payload, kind)

    def _write(self, payload: bytes, kind: EntityKind) -> Path:
        if self._directory is not None:
            self._directory.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            prefix=f"{EntityKind(kind).value}-",
            suffix=".csv",
            dir=self._directory,
            delete=False,
        )
        try:
            tmp.write(payload)
            tmp.close()
        except Exception:
            tmp.close()
            Path(tmp.name).unlink(missing_ok=True)
            raise
        return Path(tmp.name)

    async def release(self, path: Path) -> bool:
        """Delete the artifact. Returns False (and logs) if deletion failed."""
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as exc:
            log.error("artifact_release_failed", path=str(path), error=str(exc))
            return False
        log.debug("artifact_released", path=str(path))
        return True

    @asynccontextmanager
    async def scoped(
        self,
        payload: bytes,
        kind: EntityKind,
        *,
        defer: DeferRelease | None = None,
    ) -> AsyncIterator[Path]:
        path = await self.create(payload, kind)
        log.info("artifact_created", path=str(path), kind=str(kind), bytes=len(payload))
        try:
            yield path
        finally:
            if defer is not None:
                defer(self.release, path)
            else:
                await self.release(path)
