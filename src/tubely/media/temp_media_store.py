"""Per-request staging directories for uploaded and remuxed media."""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from starlette.datastructures import UploadFile

from ..config import MediaPaths
from ..ingest.ingest_errors import StagingFailedError

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB
UPLOAD_FILENAME = "tubely-upload.mp4"


@dataclass(slots=True)
class StagingArea:
    """Private directory holding every file one request writes to disk."""

    request_id: str
    directory: Path

    @property
    def upload_path(self) -> Path:
        return self.directory / UPLOAD_FILENAME

    def files(self) -> list[Path]:
        if not self.directory.exists():
            return []
        return sorted(path for path in self.directory.iterdir() if path.is_file())


@dataclass(slots=True)
class TempMediaStore:
    """Manages lifecycle of staged upload files."""

    paths: MediaPaths
    stale_after_seconds: int
    chunk_size_bytes: int = CHUNK_SIZE
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def staging_dir(self, request_id: str) -> Path:
        return self.paths.staging / request_id

    @contextmanager
    def staging(self, request_id: str | None = None) -> Iterator[StagingArea]:
        """Yield a fresh staging area that is removed when the scope exits."""
        request_id = request_id or uuid.uuid4().hex
        directory = self.staging_dir(request_id)
        directory.mkdir(parents=True, exist_ok=False)
        area = StagingArea(request_id=request_id, directory=directory)
        try:
            yield area
        finally:
            self.cleanup(area)

    async def persist_upload(self, area: StagingArea, upload: UploadFile) -> Path:
        """Copy upload contents into the staging area."""
        target = area.upload_path
        size = 0
        try:
            with target.open("wb") as sink:
                while True:
                    chunk = await upload.read(self.chunk_size_bytes)
                    if not chunk:
                        break
                    size += len(chunk)
                    sink.write(chunk)
        except OSError as exc:
            self.log.error(
                "media.staging.persist_failed",
                extra={"request_id": area.request_id, "path": str(target), "error": str(exc)},
            )
            raise StagingFailedError(f"could not stage upload: {exc}") from exc
        self.log.info(
            "media.staging.persisted",
            extra={"request_id": area.request_id, "path": str(target), "size_bytes": size},
        )
        return target

    def cleanup(self, area: StagingArea) -> None:
        """Remove the staging directory and everything in it."""
        leftovers = [str(path) for path in area.files()]
        self._remove_directory(area.directory)
        self.log.info(
            "media.staging.removed",
            extra={"request_id": area.request_id, "files": leftovers},
        )

    def cleanup_expired(self, reference_time: datetime | None = None, *, dry_run: bool = False) -> int:
        """Purge staging directories older than the TTL (left by killed workers)."""
        now = reference_time or datetime.now(tz=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = now - timedelta(seconds=self.stale_after_seconds)
        if not self.paths.staging.exists():
            return 0

        removed = 0
        for directory in self.paths.staging.iterdir():
            if not directory.is_dir():
                continue
            modified_at = datetime.fromtimestamp(directory.stat().st_mtime, tz=timezone.utc)
            if modified_at > cutoff:
                continue
            removed += 1
            if dry_run:
                continue
            self._remove_directory(directory)
            self.log.info(
                "media.staging.expired_removed",
                extra={"path": str(directory), "modified_at": modified_at.isoformat()},
            )
        return removed

    def _remove_directory(self, directory: Path) -> None:
        if directory.exists():
            shutil.rmtree(directory, ignore_errors=True)
        if directory.exists():
            self.log.error("media.staging.remove_failed", extra={"path": str(directory)})
