"""
Chunked response state.

Carries the "chunk headers sent" flag of one request and hands written chunks
to the transport. User code may run on a worker thread, so every hand-off goes
through the event loop that owns the request.
"""

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Callable, Dict, Optional

from runtimes.executor.core.exceptions import ProtocolError
from runtimes.executor.core.headers import public_headers

logger = logging.getLogger("executor.stream")

STREAM_DEFAULT_HEADERS = {
    "cache-control": "no-store",
    "content-type": "text/event-stream",
    "connection": "keep-alive",
    "transfer-encoding": "chunked",
}


class ResponseStream:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._lock = threading.Lock()
        self._chunks: asyncio.Queue = asyncio.Queue()
        self._started_event = asyncio.Event()
        self.started = False
        self.closed = False
        self.status_code = 200
        self.headers: Dict[str, str] = {}

    def start(self, status_code: int = 200, headers: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            if self.started:
                raise ProtocolError("You can only call res.start() once")
            self.started = True

        stream_headers = public_headers(headers or {})
        for name, value in STREAM_DEFAULT_HEADERS.items():
            stream_headers.setdefault(name, value)

        self.status_code = status_code
        self.headers = stream_headers
        self._call_soon(self._started_event.set)

    def write(self, data: bytes) -> None:
        if not self.started:
            raise ProtocolError("You must call res.start() to start a chunk response.")
        if self.closed:
            # Response already finalized (e.g. timed out); nothing can reach the client.
            logger.debug("Discarding %d bytes written after the stream closed", len(data))
            return
        self._call_soon(self._chunks.put_nowait, bytes(data))

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
        self._call_soon(self._chunks.put_nowait, None)

    async def wait_started(self) -> None:
        await self._started_event.wait()

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield written chunks until the stream is closed."""
        while True:
            chunk = await self._chunks.get()
            if chunk is None:
                return
            yield chunk

    def _call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            callback(*args)
        else:
            self._loop.call_soon_threadsafe(callback, *args)
