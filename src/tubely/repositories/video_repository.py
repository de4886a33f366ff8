"""Persistence layer for video metadata records."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from ..db.db_models import VideoModel
from ..exceptions import require_row, translate_db_errors
from ..videos.video_models import Video


class VideoRepository:
    """Read and update video records."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_video(
        self,
        *,
        user_id: UUID,
        title: str,
        description: str = "",
        video_id: UUID | None = None,
    ) -> Video:
        now = datetime.utcnow()
        model = VideoModel(
            id=str(video_id or uuid.uuid4()),
            user_id=str(user_id),
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
        )
        with translate_db_errors(operation="create_video"):
            with self._session_factory() as session:
                session.add(model)
                session.commit()
                return self._to_domain(model)

    def get_video(self, video_id: UUID) -> Video:
        with translate_db_errors(operation="get_video"):
            with self._session_factory() as session:
                model = require_row(session.get(VideoModel, str(video_id)), identifier=str(video_id))
                return self._to_domain(model)

    def update_video(self, video: Video) -> Video:
        with translate_db_errors(operation="update_video"):
            with self._session_factory() as session:
                model = require_row(session.get(VideoModel, str(video.id)), identifier=str(video.id))
                model.title = video.title
                model.description = video.description
                model.thumbnail_url = video.thumbnail_url
                model.video_url = video.video_url
                model.updated_at = datetime.utcnow()
                session.commit()
                return self._to_domain(model)

    @staticmethod
    def _to_domain(model: VideoModel) -> Video:
        return Video(
            id=UUID(model.id),
            user_id=UUID(model.user_id),
            title=model.title,
            description=model.description,
            thumbnail_url=model.thumbnail_url,
            video_url=model.video_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
