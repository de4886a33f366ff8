"""Content-type and ownership checks for video uploads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from ..config import UploadLimits
from ..videos.video_models import Video
from .ingest_errors import NotOwnerError, UnsupportedMediaError

logger = logging.getLogger(__name__)


def media_type_of(content_type: str | None) -> str:
    """Return the bare media type, dropping parameters such as ``codecs``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


@dataclass(slots=True)
class UploadValidator:
    """Validate uploads against configured limits."""

    limits: UploadLimits

    def validate_content_type(self, content_type: str | None) -> str:
        """Return the declared content type if it names the accepted container."""
        if media_type_of(content_type) != self.limits.accepted_content_type:
            logger.warning(
                "upload.validation.unsupported_media",
                extra={"content_type": content_type},
            )
            raise UnsupportedMediaError(content_type or "")
        return content_type or self.limits.accepted_content_type

    @staticmethod
    def ensure_owner(video: Video, user_id: UUID) -> None:
        if video.user_id != user_id:
            logger.warning(
                "upload.validation.not_owner",
                extra={"video_id": str(video.id), "user_id": str(user_id)},
            )
            raise NotOwnerError(f"user {user_id} does not own video {video.id}")
