"""Reusable error primitives for API exception handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.responses import JSONResponse

INTERNAL_ERROR_MESSAGE = "Internal server error"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiError(Exception):
    """Application-level error rendered as ``{"error": message}``."""

    status_code: int
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message},
            headers=dict(self.headers or {}),
        )


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback and answer with the generic 500 envelope."""

    logger.error(
        "api.unhandled_error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return internal_error().to_response()


def bad_request_error(message: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message)


def unauthorized_error(message: str) -> ApiError:
    """Return an :class:`ApiError` representing an authentication failure."""

    return ApiError(status.HTTP_401_UNAUTHORIZED, message)


def not_found_error(message: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message)


def payload_too_large_error(message: str) -> ApiError:
    return ApiError(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, message)


def internal_error() -> ApiError:
    """Generic 500; details stay in the server log."""

    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


__all__ = [
    "ApiError",
    "INTERNAL_ERROR_MESSAGE",
    "api_error_handler",
    "bad_request_error",
    "internal_error",
    "not_found_error",
    "payload_too_large_error",
    "unauthorized_error",
    "unhandled_error_handler",
]
