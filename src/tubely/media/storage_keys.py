"""Storage key generation."""

from __future__ import annotations

import secrets
from collections.abc import Callable

from ..ingest.ingest_models import AspectBucket, StorageKey
from .aspect import bucket_prefix

KEY_RANDOM_BYTES = 32
KEY_SUFFIX = ".mp4"


def generate_storage_key(
    bucket: AspectBucket,
    *,
    token_hex: Callable[[int], str] = secrets.token_hex,
) -> StorageKey:
    """Return ``<prefix>/<64 hex chars>.mp4``.

    The random part doubles as an unguessable access token once the object is
    publicly readable, so it must come from the OS CSPRNG.
    """
    return StorageKey(
        bucket_prefix=bucket_prefix(bucket),
        random_component=token_hex(KEY_RANDOM_BYTES),
        suffix=KEY_SUFFIX,
    )
