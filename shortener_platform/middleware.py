"""
ASGI middleware for gzip-compressed request bodies.

Starlette's `GZipMiddleware` only compresses responses. `GzipRequestMiddleware`
handles the other direction: when a request declares `Content-Encoding: gzip`
the whole body is read, decompressed and replayed to the app with the encoding
header removed and `Content-Length` updated. A body that is not a valid gzip
stream is answered with 500 and logged, before any route runs.
"""

import gzip
import logging
import zlib

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class GzipRequestMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or "gzip" not in Headers(scope=scope).get("content-encoding", ""):
            await self.app(scope, receive, send)
            return

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before sending the full body.
                return
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)

        try:
            body = gzip.decompress(b"".join(chunks))
        except (OSError, EOFError, zlib.error) as e:
            logger.error("failed to decompress request body: %s", e)
            response = PlainTextResponse("Internal Server Error", status_code=500)
            await response(scope, receive, send)
            return

        headers = [
            (name, value)
            for name, value in scope["headers"]
            if name not in (b"content-encoding", b"content-length")
        ]
        headers.append((b"content-length", str(len(body)).encode("latin-1")))
        scope = dict(scope, headers=headers)

        replayed = False

        async def receive_decompressed() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, receive_decompressed, send)
