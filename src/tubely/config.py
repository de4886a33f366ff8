"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db

ONE_GIB = 1 << 30


@dataclass(slots=True)
class UploadLimits:
    max_upload_bytes: int
    chunk_size_bytes: int
    accepted_content_type: str = "video/mp4"


@dataclass(slots=True)
class MediaPaths:
    root: Path
    staging: Path


@dataclass(slots=True)
class MediaToolSettings:
    ffprobe_bin: str
    ffmpeg_bin: str
    timeout_seconds: float


@dataclass(slots=True)
class StorageSettings:
    bucket: str
    region: str
    endpoint_url: str | None = None


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    upload_limits: UploadLimits
    media_tools: MediaToolSettings
    storage: StorageSettings
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    jwt_secret: str
    jwt_ttl_hours: int
    staging_ttl_seconds: int


def _ensure_media_paths(paths: MediaPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.staging.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    root = Path(os.getenv("MEDIA_ROOT", "media"))
    media_paths = MediaPaths(root=root, staging=root / "staging")
    _ensure_media_paths(media_paths)

    upload_limits = UploadLimits(
        max_upload_bytes=int(os.getenv("UPLOAD_MAX_BYTES", ONE_GIB)),
        chunk_size_bytes=int(os.getenv("UPLOAD_CHUNK_SIZE_BYTES", 1 * 1024 * 1024)),
    )
    media_tools = MediaToolSettings(
        ffprobe_bin=os.getenv("FFPROBE_BIN", "ffprobe"),
        ffmpeg_bin=os.getenv("FFMPEG_BIN", "ffmpeg"),
        timeout_seconds=float(os.getenv("MEDIA_TOOL_TIMEOUT_SECONDS", 120)),
    )
    storage = StorageSettings(
        bucket=os.getenv("S3_BUCKET", "tubely-videos"),
        region=os.getenv("S3_REGION", "us-east-1"),
        endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
    )

    jwt_secret = os.getenv("JWT_SECRET", "")
    if not jwt_secret:
        raise RuntimeError("JWT_SECRET is not configured")

    database_url = os.getenv("DATABASE_URL", "sqlite:///tubely.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        upload_limits=upload_limits,
        media_tools=media_tools,
        storage=storage,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        jwt_secret=jwt_secret,
        jwt_ttl_hours=int(os.getenv("JWT_TTL_HOURS", 1)),
        staging_ttl_seconds=int(os.getenv("STAGING_TTL_SECONDS", 3600)),
    )
