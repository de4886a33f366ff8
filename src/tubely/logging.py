"""Logging configuration for Tubely."""

from __future__ import annotations

import logging
import os

import structlog

# Chatty at INFO on every S3 request.
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "python_multipart")


def configure_logging(level: int | str | None = None) -> None:
    """Configure stdlib logging and structlog; ``LOG_LEVEL`` sets the default level."""
    resolved = level if level is not None else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
