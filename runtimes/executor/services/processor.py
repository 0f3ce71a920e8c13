"""
Function Request Processor - Service Layer

Standardizes the flow: NormalizedRequest -> Context -> Output -> Response.
"""

import asyncio
import logging
from typing import Dict, Optional

from fastapi.responses import Response

from runtimes.executor.core.responses import ChunkedResponse
from runtimes.executor.models.output import Output
from runtimes.executor.models.request import NormalizedRequest
from runtimes.executor.services.context import build_context
from runtimes.executor.services.invoker import FunctionInvoker
from runtimes.executor.services.log_sink import LogSink
from runtimes.executor.services.materializer import ResponseMaterializer
from runtimes.executor.services.stream import ResponseStream

logger = logging.getLogger("executor.processor")


class FunctionRequestProcessor:
    """
    Orchestrates one function request.

    Returns a buffered response once the function is done, or a chunked response
    as soon as the function calls res.start().
    """

    def __init__(self, invoker: FunctionInvoker, materializer: ResponseMaterializer):
        self.invoker = invoker
        self.materializer = materializer

    async def process_request(
        self,
        request: NormalizedRequest,
        sink: LogSink,
        timeout: Optional[int] = None,
    ) -> Response:
        logger.debug(
            f"Processing request {request.method} {request.path}",
            extra={"timeout": timeout},
        )

        stream = ResponseStream()
        context = build_context(request, sink, stream)

        invocation = asyncio.ensure_future(self.invoker.invoke(context, sink, stream, timeout))
        invocation.add_done_callback(lambda _: stream.close())
        started = asyncio.ensure_future(stream.wait_started())
        try:
            await asyncio.wait({invocation, started}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            started.cancel()

        if stream.started:
            return ChunkedResponse(stream, lambda: self._finish_stream(invocation, sink))

        return self.materializer.render(invocation.result(), sink)

    async def _finish_stream(self, invocation: "asyncio.Future[Output]", sink: LogSink) -> Dict[str, str]:
        try:
            output = await invocation
        except Exception as e:
            logger.exception(f"Unexpected error while finishing chunk response: {e}")
            sink.error(LogSink.describe(e))
            output = Output(chunked=True)
        return self.materializer.trailers(output, sink)
