"""
Where: runtimes/executor/middleware.py
What: Request ID assignment and structured access logging.
Why: Pure ASGI so chunked bodies and trailers pass through unchanged.
"""

import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from runtimes.common.core.request_context import clear_request_id, generate_request_id

logger = logging.getLogger("executor.access")


class RequestContextMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        req_id = generate_request_id()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
            client = scope.get("client")
            logger.info(
                f"{scope['method']} {scope['path']} {status_code}",
                extra={
                    "request_id": req_id,
                    "method": scope["method"],
                    "path": scope["path"],
                    "status": status_code,
                    "latency_ms": process_time_ms,
                    "client_ip": client[0] if client else None,
                },
            )
            clear_request_id()
