"""
Custom exception classes.

Represent errors raised while validating, invoking and answering a function request.
"""

import logging

from fastapi import Request, status
from fastapi.responses import PlainTextResponse, Response

from runtimes.executor.services.log_sink import LogSink

logger = logging.getLogger("executor.exceptions")


class RuntimeExecutionError(Exception):
    """Base exception class for function execution."""

    pass


# ===========================================
# Pre-invocation rejections
# ===========================================


class RequestRejectedError(RuntimeExecutionError):
    """Raised before invocation; answered with a plain text 500."""

    message = "Request rejected."

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)


class TimeoutHeaderInvalid(RequestRejectedError):
    """Raised when x-open-runtimes-timeout is not a positive integer."""

    message = 'Header "x-open-runtimes-timeout" must be an integer greater than 0.'


class Unauthorized(RequestRejectedError):
    """Raised when x-open-runtimes-secret does not match the configured secret."""

    message = 'Unauthorized. Provide correct "x-open-runtimes-secret" header.'


# ===========================================
# Invocation failures
# ===========================================


class FunctionInvalidError(RuntimeExecutionError):
    """Raised when the entrypoint does not resolve to a callable."""

    def __init__(self, entrypoint: str):
        self.entrypoint = entrypoint
        super().__init__("User function is not valid.")


class CodeFileNotFoundError(ModuleNotFoundError, RuntimeExecutionError):
    """Raised when no loader strategy can find the entrypoint."""

    def __init__(self, entrypoint: str):
        self.entrypoint = entrypoint
        super().__init__(f"Cannot find entrypoint: {entrypoint}")


class ProtocolError(RuntimeExecutionError):
    """Raised on misuse of the chunked response API."""

    pass


class BodyDecodeError(RuntimeExecutionError, ValueError):
    """Raised when the request body cannot be decoded as requested."""

    def __init__(self, kind: str, cause: Exception):
        self.kind = kind
        self.cause = cause
        super().__init__(f"Could not decode request body as {kind}: {cause}")


# ===========================================
# Exception Handlers
# ===========================================


async def request_rejected_handler(request: Request, exc: RequestRejectedError):
    """
    Handler for pre-invocation rejections.
    """
    logger.warning(
        "Request rejected: %s",
        exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.

    Answers with an empty 500 that still carries the logs and errors collected so far.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    sink = getattr(request.state, "log_sink", None)
    if sink is None:
        sink = LogSink()
    sink.error(LogSink.describe(exc))

    return Response(
        content=b"",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers=sink.export_headers(),
    )
