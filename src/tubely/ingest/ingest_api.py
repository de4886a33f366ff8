"""HTTP routes for video uploads."""

from __future__ import annotations

import logging
import uuid
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from ..api.errors import (
    bad_request_error,
    internal_error,
    not_found_error,
    payload_too_large_error,
    unauthorized_error,
)
from ..auth.auth_dependencies import require_user
from ..exceptions import RepositoryError
from ..schemas.videos import VideoResponse
from .ingest_errors import (
    InvalidVideoIdError,
    MalformedRequestError,
    MissingUploadError,
    NotOwnerError,
    PipelineError,
    RequestTooLargeError,
    UnsupportedMediaError,
    VideoNotFoundError,
)
from .ingest_service import UploadService, parse_video_id, upload_from_form

router = APIRouter(prefix="/videos", tags=["videos"])
logger = logging.getLogger(__name__)

UPLOAD_FIELD = "video"


def get_upload_service(request: Request) -> UploadService:
    """Fetch upload service from application state."""
    try:
        return request.app.state.upload_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadService is not configured") from exc


def reject_declared_oversize(
    request: Request,
    service: UploadService = Depends(get_upload_service),
) -> None:
    """Runs before anything else touches the body."""
    try:
        service.size_guard.check_declared(request.headers.get("content-length"))
    except RequestTooLargeError as exc:
        raise payload_too_large_error("Content-Length too large") from exc
    except MalformedRequestError as exc:
        raise bad_request_error("Invalid Content-Length header") from exc


def video_id_param(video_id: str) -> UUID:
    try:
        return parse_video_id(video_id)
    except InvalidVideoIdError as exc:
        raise bad_request_error("Invalid video ID") from exc


@router.post(
    "/{video_id}/upload",
    response_model=VideoResponse,
    dependencies=[Depends(reject_declared_oversize)],
)
async def upload_video(
    request: Request,
    video_id: UUID = Depends(video_id_param),
    user_id: UUID = Depends(require_user),
    service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    """Validate, remux and store a video, then record its URL."""
    request_id = uuid.uuid4().hex

    try:
        video = service.authorize(video_id, user_id)
    except VideoNotFoundError as exc:
        raise not_found_error("Could not find video") from exc
    except NotOwnerError as exc:
        raise unauthorized_error("You are not the owner of this video") from exc
    except RepositoryError as exc:
        logger.exception(
            "upload.request.unexpected_error",
            extra={"request_id": request_id, "video_id": str(video_id), "phase": "authorize"},
        )
        raise internal_error() from exc

    try:
        form = await service.size_guard.read_form(request)
    except RequestTooLargeError as exc:
        raise payload_too_large_error("Request body too large") from exc
    except MalformedRequestError as exc:
        raise bad_request_error("Unable to parse form") from exc
    except OSError as exc:
        logger.exception(
            "upload.request.unexpected_error",
            extra={"request_id": request_id, "video_id": str(video_id), "phase": "read_form"},
        )
        raise internal_error() from exc

    try:
        try:
            upload = upload_from_form(form, UPLOAD_FIELD)
        except MissingUploadError as exc:
            raise bad_request_error("Unable to parse form file") from exc

        try:
            updated = await service.upload_video(video, upload, request_id=request_id)
        except UnsupportedMediaError as exc:
            raise bad_request_error("Incorrect mime type, need video/mp4") from exc
        except PipelineError as exc:
            logger.error(
                "upload.request.failed",
                extra={
                    "request_id": request_id,
                    "video_id": str(video_id),
                    "failed_stage": exc.stage.value,
                    "error_type": type(exc).__name__,
                },
            )
            raise internal_error() from exc
        except Exception as exc:
            logger.exception(
                "upload.request.unexpected_error",
                extra={"request_id": request_id, "video_id": str(video_id), "phase": "pipeline"},
            )
            raise internal_error() from exc
    finally:
        await form.close()

    return VideoResponse.from_video(updated)
