"""Data structures for the upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from uuid import UUID


class UploadStage(StrEnum):
    """Pipeline states; transitions only move forward."""

    VALIDATING = "validating"
    STAGED = "staged"
    PROBED = "probed"
    CLASSIFIED = "classified"
    REMUXED = "remuxed"
    UPLOADED = "uploaded"
    PERSISTED = "persisted"
    FAILED = "failed"


_STAGE_ORDER = [
    UploadStage.VALIDATING,
    UploadStage.STAGED,
    UploadStage.PROBED,
    UploadStage.CLASSIFIED,
    UploadStage.REMUXED,
    UploadStage.UPLOADED,
    UploadStage.PERSISTED,
]


class AspectBucket(StrEnum):
    """Aspect-ratio class that decides the storage prefix."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Geometry of the first stream reported by ffprobe."""

    width: int
    height: int


@dataclass(frozen=True, slots=True)
class StorageKey:
    """Object key of the form ``<bucket prefix>/<64 hex chars>.mp4``."""

    bucket_prefix: str
    random_component: str
    suffix: str = ".mp4"

    def __str__(self) -> str:
        return f"{self.bucket_prefix}{self.random_component}{self.suffix}"


@dataclass(slots=True)
class UploadContext:
    """Per-request pipeline state, used for logging and cleanup checks."""

    request_id: str
    video_id: UUID
    content_type: str | None = None
    stage: UploadStage = UploadStage.VALIDATING
    failed_stage: UploadStage | None = None
    source_path: Path | None = None
    remuxed_path: Path | None = None
    probe: ProbeResult | None = None
    bucket: AspectBucket | None = None
    storage_key: StorageKey | None = None
    video_url: str | None = None

    def advance(self, stage: UploadStage) -> None:
        if stage is UploadStage.FAILED or self.stage is UploadStage.FAILED:
            raise RuntimeError(f"cannot advance from {self.stage} to {stage}")
        if _STAGE_ORDER.index(stage) <= _STAGE_ORDER.index(self.stage):
            raise RuntimeError(f"stage {stage} does not follow {self.stage}")
        self.stage = stage

    def fail(self) -> None:
        if self.stage is not UploadStage.FAILED:
            self.failed_stage = self.stage
            self.stage = UploadStage.FAILED

    def log_fields(self) -> dict[str, str]:
        return {
            "request_id": self.request_id,
            "video_id": str(self.video_id),
            "stage": self.stage.value,
        }
