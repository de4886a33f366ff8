"""Object storage uploads for processed videos."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageSettings
from ..ingest.ingest_errors import UploadFailedError
from ..ingest.ingest_models import StorageKey


def public_url(bucket: str, region: str, key: StorageKey | str) -> str:
    """Virtual-hosted style URL; the store itself never returns one."""
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


def build_s3_client(settings: StorageSettings) -> Any:
    return boto3.client(
        "s3",
        region_name=settings.region,
        endpoint_url=settings.endpoint_url,
    )


@dataclass(slots=True)
class S3Uploader:
    """PUT a file from disk under a key and derive its public URL."""

    client: Any
    bucket: str
    region: str
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "S3Uploader":
        return cls(client=build_s3_client(settings), bucket=settings.bucket, region=settings.region)

    def upload(self, path: Path, key: StorageKey, content_type: str) -> str:
        """Stream ``path`` to the bucket; blocking, run it off the event loop."""
        object_key = str(key)
        try:
            with path.open("rb") as body:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=object_key,
                    Body=body,
                    ContentType=content_type,
                )
        except (BotoCoreError, ClientError, OSError) as exc:
            self.log.error(
                "storage.upload.failed",
                extra={
                    "bucket": self.bucket,
                    "key": object_key,
                    "path": str(path),
                    "error": str(exc),
                },
            )
            raise UploadFailedError(f"upload of {object_key} failed") from exc

        url = public_url(self.bucket, self.region, object_key)
        self.log.info(
            "storage.upload.done",
            extra={"bucket": self.bucket, "key": object_key, "url": url},
        )
        return url
