"""Aspect-ratio classification used to partition storage keys."""

from __future__ import annotations

from ..ingest.ingest_models import AspectBucket

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
# Changing this moves borderline videos into a different key prefix.
RATIO_TOLERANCE = 0.02

BUCKET_PREFIXES: dict[AspectBucket, str] = {
    AspectBucket.LANDSCAPE: "landscape/",
    AspectBucket.PORTRAIT: "portrait/",
    AspectBucket.OTHER: "other/",
}


def classify(width: int, height: int) -> AspectBucket:
    """Map frame geometry to 16:9, 9:16 or other."""
    if height == 0:
        return AspectBucket.OTHER

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < RATIO_TOLERANCE:
        return AspectBucket.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < RATIO_TOLERANCE:
        return AspectBucket.PORTRAIT
    return AspectBucket.OTHER


def bucket_prefix(bucket: AspectBucket) -> str:
    return BUCKET_PREFIXES[bucket]
