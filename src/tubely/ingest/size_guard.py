"""Request body ceiling enforced on both the header and the streamed bytes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from starlette.datastructures import FormData
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.types import Message, Receive

from .ingest_errors import MalformedRequestError, RequestTooLargeError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SizeGuard:
    """Reject bodies above ``max_bytes`` before anything is staged."""

    max_bytes: int
    max_fields: int = 16

    def check_declared(self, content_length: str | None) -> int | None:
        """Validate the ``Content-Length`` header; absent is allowed."""
        if content_length is None:
            return None
        try:
            declared = int(content_length)
        except ValueError as exc:
            raise MalformedRequestError("invalid Content-Length header") from exc
        if declared < 0:
            raise MalformedRequestError("invalid Content-Length header")
        if declared > self.max_bytes:
            logger.warning(
                "upload.size.declared_too_large",
                extra={"declared_bytes": declared, "limit_bytes": self.max_bytes},
            )
            raise RequestTooLargeError(declared, self.max_bytes)
        return declared

    def limit_receive(self, receive: Receive) -> Receive:
        """Wrap an ASGI ``receive`` so reading past the ceiling raises."""
        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(
                        "upload.size.streamed_too_large",
                        extra={"received_bytes": received, "limit_bytes": self.max_bytes},
                    )
                    raise RequestTooLargeError(received, self.max_bytes)
            return message

        return limited_receive

    async def read_form(self, request: Request) -> FormData:
        """Parse the multipart body through the byte-counting receive channel."""
        content_type = request.headers.get("content-type", "")
        if not content_type.lower().startswith("multipart/form-data"):
            raise MalformedRequestError("expected multipart/form-data body")

        limited = Request(request.scope, receive=self.limit_receive(request.receive))
        try:
            return await limited.form(max_files=1, max_fields=self.max_fields)
        except (MultiPartException, StarletteHTTPException) as exc:
            raise MalformedRequestError("unable to parse multipart form") from exc
