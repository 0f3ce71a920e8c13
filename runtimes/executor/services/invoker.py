"""
Function Invoker

Calls the user function with its context under an optional deadline and always
produces an Output: the function's own, or a synthesized failure.

The deadline is a race: when the timer wins, the response is answered with a
failure while the function keeps running in the background. Nothing is cancelled.
"""

import asyncio
import inspect
import io
import logging
from typing import Any, Optional

from runtimes.executor.core.capture import capture_output
from runtimes.executor.models.output import Output
from runtimes.executor.services.context import Context
from runtimes.executor.services.loader import FunctionLoader
from runtimes.executor.services.log_sink import LogSink
from runtimes.executor.services.stream import ResponseStream

logger = logging.getLogger("executor.invoker")

TIMEOUT_MESSAGE = "Execution timed out."
LOAD_FAILED_MESSAGE = "Could not load code file."
MISSING_RETURN_MESSAGE = (
    "Return statement missing. return context.res.empty() if no response is expected."
)
STREAM_NOT_ENDED_MESSAGE = (
    "Chunk response already started. return context.res.end() to finish it."
)


class FunctionInvoker:
    def __init__(self, loader: FunctionLoader):
        """
        Args:
            loader: resolves the entrypoint to the user callable
        """
        self.loader = loader

    async def invoke(
        self,
        context: Context,
        sink: LogSink,
        stream: ResponseStream,
        timeout: Optional[int] = None,
    ) -> Output:
        """
        Run the user function and return the Output to materialize.

        Args:
            context: value handed to the user function
            sink: receives failure descriptions and captured stdout/stderr
            stream: chunk state; decides between a 500 and a chunk termination on failure
            timeout: deadline in seconds, None for no deadline
        """
        captured = io.StringIO()
        task = asyncio.ensure_future(self._execute(context, captured))

        done, _ = await asyncio.wait({task}, timeout=timeout)

        if task not in done:
            logger.warning("Execution timed out", extra={"timeout": timeout})
            task.add_done_callback(_log_late_completion)
            sink.error(TIMEOUT_MESSAGE)
            output = self._failure_output(context, stream)
        elif task.exception() is not None:
            output = self._handle_exception(task.exception(), context, sink, stream)
        else:
            output = self._check_result(task.result(), context, sink, stream)

        sink.add_unsupported_logs(captured.getvalue())
        return output

    async def _execute(self, context: Context, captured: io.StringIO) -> Any:
        with capture_output(captured):
            function = self.loader.resolve()

            if inspect.iscoroutinefunction(function):
                result = await function(context)
            else:
                # Plain functions run on a worker thread; to_thread carries the context variables.
                result = await asyncio.to_thread(function, context)

            if inspect.isawaitable(result):
                result = await result

            return result

    def _handle_exception(
        self, exc: BaseException, context: Context, sink: LogSink, stream: ResponseStream
    ) -> Output:
        logger.info(
            "User function raised %s",
            type(exc).__name__,
            extra={"error_type": type(exc).__name__, "error_detail": str(exc)},
        )
        if isinstance(exc, ModuleNotFoundError):
            sink.error(LOAD_FAILED_MESSAGE)

        sink.error(LogSink.describe(exc))
        return self._failure_output(context, stream)

    def _check_result(
        self, result: Any, context: Context, sink: LogSink, stream: ResponseStream
    ) -> Output:
        if not isinstance(result, Output):
            sink.error(MISSING_RETURN_MESSAGE)
            return self._failure_output(context, stream)

        if stream.started and not result.chunked:
            sink.error(STREAM_NOT_ENDED_MESSAGE)
            return context.res.end(result.headers)

        return result

    @staticmethod
    def _failure_output(context: Context, stream: ResponseStream) -> Output:
        if stream.started:
            return context.res.end()
        return context.res.send("", 500, {})


def _log_late_completion(task: asyncio.Future) -> None:
    """Retrieve the outcome of a function that finished after its deadline."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.info("Timed out function failed afterwards: %s", exc)
    else:
        logger.debug("Timed out function completed afterwards")
