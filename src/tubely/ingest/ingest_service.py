"""Domain service orchestrating video uploads."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from uuid import UUID

from starlette.datastructures import FormData, UploadFile

from ..exceptions import NotFoundError, RepositoryError
from ..media.aspect import classify
from ..media.media_tools import MediaToolkit
from ..media.storage_keys import generate_storage_key
from ..media.temp_media_store import TempMediaStore
from ..repositories.video_repository import VideoRepository
from ..storage.s3_uploader import S3Uploader
from ..videos.video_models import Video
from .ingest_errors import (
    InvalidVideoIdError,
    MissingUploadError,
    PersistFailedError,
    PipelineError,
    VideoNotFoundError,
)
from .ingest_models import UploadContext, UploadStage
from .size_guard import SizeGuard
from .validation import UploadValidator

logger = logging.getLogger(__name__)


def parse_video_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise InvalidVideoIdError(raw) from exc


def upload_from_form(form: FormData, field_name: str) -> UploadFile:
    upload = form.get(field_name)
    if not isinstance(upload, UploadFile):
        raise MissingUploadError(field_name)
    return upload


@dataclass(slots=True)
class UploadService:
    """Coordinates validate -> stage -> probe -> remux -> upload -> persist."""

    video_repo: VideoRepository
    size_guard: SizeGuard
    validator: UploadValidator
    temp_store: TempMediaStore
    toolkit: MediaToolkit
    uploader: S3Uploader
    log: logging.Logger = field(default_factory=lambda: logger)

    def authorize(self, video_id: UUID, user_id: UUID) -> Video:
        """Existence first, then ownership."""
        try:
            video = self.video_repo.get_video(video_id)
        except NotFoundError as exc:
            self.log.info("upload.video_not_found", extra={"video_id": str(video_id)})
            raise VideoNotFoundError(str(video_id)) from exc
        self.validator.ensure_owner(video, user_id)
        return video

    async def upload_video(
        self,
        video: Video,
        upload: UploadFile,
        *,
        request_id: str | None = None,
    ) -> Video:
        """Run the pipeline for an authorised video and return the updated record."""
        context = UploadContext(request_id=request_id or uuid.uuid4().hex, video_id=video.id)
        context.content_type = self.validator.validate_content_type(upload.content_type)
        self.log.info("upload.accepted", extra=context.log_fields())

        try:
            with self.temp_store.staging(context.request_id) as area:
                context.source_path = await self.temp_store.persist_upload(area, upload)
                self._advance(context, UploadStage.STAGED)

                context.probe = await self.toolkit.probe(context.source_path)
                self._advance(context, UploadStage.PROBED)

                context.bucket = classify(context.probe.width, context.probe.height)
                self._advance(context, UploadStage.CLASSIFIED)

                context.remuxed_path = await self.toolkit.remux(context.source_path)
                self._advance(context, UploadStage.REMUXED)

                context.storage_key = generate_storage_key(context.bucket)
                context.video_url = await asyncio.to_thread(
                    self.uploader.upload,
                    context.remuxed_path,
                    context.storage_key,
                    context.content_type,
                )
                self._advance(context, UploadStage.UPLOADED)
        except asyncio.CancelledError:
            context.fail()
            self.log.warning("upload.cancelled", extra=context.log_fields())
            raise
        except Exception as exc:
            self._fail(context, exc)
            raise

        updated = self._persist(context, video)
        self._advance(context, UploadStage.PERSISTED)
        return updated

    def _persist(self, context: UploadContext, video: Video) -> Video:
        video.video_url = context.video_url
        try:
            return self.video_repo.update_video(video)
        except RepositoryError as exc:
            context.fail()
            self.log.error(
                "upload.persist_failed",
                extra={**context.log_fields(), "video_url": context.video_url, "error": str(exc)},
            )
            raise PersistFailedError(f"could not update video {video.id}") from exc

    def _fail(self, context: UploadContext, exc: Exception) -> None:
        context.fail()
        extra = {
            **context.log_fields(),
            "failed_stage": context.failed_stage.value if context.failed_stage else None,
            "error": str(exc),
            "error_type": type(exc).__name__,
        }
        if isinstance(exc, PipelineError):
            self.log.error("upload.failed", extra=extra)
        else:
            self.log.exception("upload.failed", extra=extra)

    def _advance(self, context: UploadContext, stage: UploadStage) -> None:
        context.advance(stage)
        extra = context.log_fields()
        if stage is UploadStage.CLASSIFIED and context.bucket is not None:
            extra["bucket"] = context.bucket.value
        if stage is UploadStage.UPLOADED and context.storage_key is not None:
            extra["key"] = str(context.storage_key)
        self.log.info("upload.stage", extra=extra)
