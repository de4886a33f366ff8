"""Domain-specific exceptions for the video upload pipeline."""

from __future__ import annotations

from ..auth.auth_service import AuthError
from .ingest_models import UploadStage


class UploadError(Exception):
    """Base class for upload-related errors."""


class ValidationError(UploadError):
    """Raised when the request itself is unacceptable."""


class InvalidVideoIdError(ValidationError):
    """Raised when the path parameter is not a UUID."""


class UnsupportedMediaError(ValidationError):
    """Raised when the uploaded part is not an MP4 container."""


class RequestTooLargeError(ValidationError):
    """Raised when the declared or streamed body exceeds the ceiling."""

    def __init__(self, size_bytes: int | None, limit_bytes: int) -> None:
        super().__init__(f"request body exceeds {limit_bytes} bytes")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class MissingUploadError(ValidationError):
    """Raised when the multipart form has no usable ``video`` part."""


class NotOwnerError(AuthError):
    """Raised when the authenticated user does not own the video."""


class VideoNotFoundError(UploadError):
    """Raised when the video id is unknown to the catalogue."""


class PipelineError(UploadError):
    """Internal failure after the upload was accepted."""

    stage: UploadStage = UploadStage.VALIDATING

    def __init__(self, message: str, *, stage: UploadStage | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class StagingFailedError(PipelineError):
    """Raised when the upload cannot be written to the staging area."""

    stage = UploadStage.VALIDATING


class ProbeFailedError(PipelineError):
    """Raised when ffprobe fails or reports no usable stream."""

    stage = UploadStage.STAGED


class RemuxFailedError(PipelineError):
    """Raised when the fast-start rewrite fails."""

    stage = UploadStage.CLASSIFIED


class UploadFailedError(PipelineError):
    """Raised when the object store rejects or drops the upload."""

    stage = UploadStage.REMUXED


class PersistFailedError(PipelineError):
    """Raised when the video record cannot be updated."""

    stage = UploadStage.UPLOADED


class MalformedRequestError(ValidationError):
    """Raised when headers or the multipart body cannot be parsed."""
