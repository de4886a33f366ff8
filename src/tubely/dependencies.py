"""Dependency wiring helpers."""

from __future__ import annotations

from datetime import timedelta

from fastapi import FastAPI

from .api.errors import ApiError, api_error_handler, unhandled_error_handler
from .auth.auth_service import TokenService
from .config import AppConfig
from .ingest.ingest_api import router as upload_router
from .ingest.ingest_service import UploadService
from .ingest.size_guard import SizeGuard
from .ingest.validation import UploadValidator
from .media.media_tools import FFmpegToolkit, MediaToolkit
from .media.temp_media_store import TempMediaStore
from .repositories.video_repository import VideoRepository
from .storage.s3_uploader import S3Uploader


def build_upload_service(
    config: AppConfig,
    *,
    toolkit: MediaToolkit | None = None,
    uploader: S3Uploader | None = None,
) -> UploadService:
    temp_store = TempMediaStore(
        paths=config.media_paths,
        stale_after_seconds=config.staging_ttl_seconds,
        chunk_size_bytes=config.upload_limits.chunk_size_bytes,
    )
    return UploadService(
        video_repo=VideoRepository(config.session_factory),
        size_guard=SizeGuard(max_bytes=config.upload_limits.max_upload_bytes),
        validator=UploadValidator(config.upload_limits),
        temp_store=temp_store,
        toolkit=toolkit or FFmpegToolkit(config.media_tools),
        uploader=uploader or S3Uploader.from_settings(config.storage),
    )


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    toolkit: MediaToolkit | None = None,
    uploader: S3Uploader | None = None,
) -> None:
    """Mount routers and attach services."""
    upload_service = build_upload_service(config, toolkit=toolkit, uploader=uploader)
    token_service = TokenService(
        signing_key=config.jwt_secret,
        token_ttl=timedelta(hours=config.jwt_ttl_hours),
    )

    app.state.config = config
    app.state.upload_service = upload_service
    app.state.token_service = token_service
    app.state.video_repo = upload_service.video_repo

    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(upload_router)
