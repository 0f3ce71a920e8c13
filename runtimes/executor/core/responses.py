"""
Chunked streaming response.

Sends the status and headers fixed by res.start(), forwards chunks while the
function writes them, then closes the body and sends the final headers as HTTP
trailers (ASGI "http.response.trailers" extension).
"""

import logging
from typing import Awaitable, Callable, Dict

from fastapi.responses import Response
from starlette.types import Receive, Scope, Send

from runtimes.executor.services.stream import ResponseStream

logger = logging.getLogger("executor.responses")

TRAILERS_EXTENSION = "http.response.trailers"


class ChunkedResponse(Response):
    def __init__(
        self,
        stream: ResponseStream,
        finish: Callable[[], Awaitable[Dict[str, str]]],
    ):
        """
        Args:
            stream: started stream providing status, headers and chunks
            finish: resolves the trailers once the invocation is over
        """
        self.stream = stream
        self.finish = finish
        self.status_code = stream.status_code
        self.background = None
        self.init_headers(stream.headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        trailers_supported = TRAILERS_EXTENSION in scope.get("extensions", {})

        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
                "trailers": trailers_supported,
            }
        )

        async for chunk in self.stream.chunks():
            if chunk:
                await send({"type": "http.response.body", "body": chunk, "more_body": True})

        trailers = await self.finish()
        await send({"type": "http.response.body", "body": b"", "more_body": False})

        if not trailers_supported:
            logger.debug(
                "Server does not support HTTP trailers, dropping %s", ", ".join(trailers)
            )
            return

        await send(
            {
                "type": "http.response.trailers",
                "headers": [
                    (name.encode("latin-1"), value.encode("latin-1"))
                    for name, value in trailers.items()
                ],
                "more_trailers": False,
            }
        )
