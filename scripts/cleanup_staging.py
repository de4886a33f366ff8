"""Cron entry point for removing staging directories left by killed workers."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime

from tubely.config import load_config
from tubely.logging import configure_logging
from tubely.media.temp_media_store import TempMediaStore

logger = logging.getLogger("tubely.scripts.cleanup_staging")


@dataclass(slots=True)
class CleanupSummary:
    staging_removed: int
    stale_after_seconds: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    reference_time: datetime | None = None,
    older_than_seconds: int | None = None,
) -> CleanupSummary:
    """Sweep staging directories older than the configured (or given) age."""
    config = load_config()
    ttl = older_than_seconds if older_than_seconds is not None else config.staging_ttl_seconds
    temp_store = TempMediaStore(paths=config.media_paths, stale_after_seconds=ttl)
    removed = temp_store.cleanup_expired(reference_time, dry_run=dry_run)
    return CleanupSummary(staging_removed=removed, stale_after_seconds=ttl, dry_run=dry_run)


def _non_negative_int(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return value


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove stale upload staging directories.")
    parser.add_argument("--dry-run", action="store_true", help="Only count directories, delete nothing.")
    parser.add_argument(
        "--older-than",
        type=_non_negative_int,
        default=None,
        metavar="SECONDS",
        help="Override STAGING_TTL_SECONDS for this run.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging()
    try:
        summary = perform_cleanup(dry_run=args.dry_run, older_than_seconds=args.older_than)
    except Exception as exc:
        logger.exception("cleanup.failed")
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    verb = "dry-run, staging_expired" if summary.dry_run else "done, staging_removed"
    print(
        f"cleanup {verb}={summary.staging_removed} (older than {summary.stale_after_seconds}s)",
        file=sys.stdout,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
