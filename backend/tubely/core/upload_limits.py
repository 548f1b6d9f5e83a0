"""
Upload size limits enforced on the network stream.

``UploadSizeLimitMiddleware`` is a pure ASGI middleware. For POSTs to a path
with a ceiling it:

- rejects a declared ``Content-Length`` over the ceiling before reading
  anything, and
- counts the body bytes as the application pulls them from ``receive``,
  answering 413 as soon as the running total passes the ceiling.

The second check covers chunked requests that declare no length, so the
multipart parser never buffers more than the ceiling.
"""

import logging

from collections.abc import Callable

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tubely.core.exceptions import UploadTooLargeError


logger = logging.getLogger(__name__)


def too_large_response(ceiling: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={
            "error": UploadTooLargeError.error_code,
            "message": f"Upload exceeds the maximum size of {ceiling} bytes",
        },
    )


class UploadSizeLimitMiddleware:
    """
    Cap request bodies for upload endpoints.

    Args:
        app: The wrapped ASGI application.
        ceiling_for: Maps a request path to its ceiling in bytes, or None
            for paths without one. Called per request so settings changes
            are picked up.

    Example:
        ```python
        app.add_middleware(UploadSizeLimitMiddleware, ceiling_for=upload_ceiling_for)
        ```
    """

    def __init__(self, app: ASGIApp, ceiling_for: Callable[[str], int | None]) -> None:
        self.app = app
        self.ceiling_for = ceiling_for

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        ceiling = self.ceiling_for(path)
        if ceiling is None:
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > ceiling:
            logger.warning("Rejected oversized upload: %s bytes declared to %s", declared, path)
            await too_large_response(ceiling)(scope, receive, send)
            return

        received = 0
        response_started = False
        rejected = False

        async def limited_receive() -> Message:
            nonlocal received, response_started, rejected
            message = await receive()
            if message["type"] != "http.request":
                return message

            received += len(message.get("body", b""))
            if received > ceiling:
                logger.warning(
                    "Rejected oversized upload: more than %d bytes streamed to %s", ceiling, path
                )
                if not response_started:
                    rejected = True
                    response_started = True
                    await too_large_response(ceiling)(scope, receive, send)
                raise UploadTooLargeError(
                    f"Upload exceeds the maximum size of {ceiling} bytes", max_bytes=ceiling
                )
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if rejected:
                # The 413 has gone out; whatever the app answers is dropped
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except UploadTooLargeError:
            if not rejected:
                raise
