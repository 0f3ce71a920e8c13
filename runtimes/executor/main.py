"""
Open Runtimes Executor - Python function runtime

Serves a single user function over HTTP: every request is normalized into a
context, the function is invoked under an optional deadline and its output is
turned into the HTTP response. Logs and errors are returned in the
x-open-runtimes-logs / x-open-runtimes-errors headers.

Chunked responses carry those headers as HTTP trailers. uvicorn does not implement
the ASGI trailers extension, so under the bundled entry point they are dropped.
"""

from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import Response

from .api.deps import RequestProcessorDep, SecretDep, TimeoutDep
from .config import ExecutorConfig, config
from .core.logging_config import setup_logging
from .core.normalizer import normalize_request, request_target
from .exceptions import register_exception_handlers
from .lifecycle import build_services, manage_lifespan
from .middleware import RequestContextMiddleware
from .services.log_sink import LogSink

# Logger setup
setup_logging(config.LOG_CONFIG_PATH, config.LOG_LEVEL)

FUNCTION_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

router = APIRouter()


@router.api_route("/{path:path}", methods=FUNCTION_METHODS)
async def execute_function(
    request: Request,
    timeout: TimeoutDep,
    _secret: SecretDep,
    processor: RequestProcessorDep,
) -> Response:
    """
    Catch-all route: every path and method invokes the user function.

    Timeout and secret headers are validated via DI before the body is read.
    """
    sink = LogSink()
    request.state.log_sink = sink

    body = await request.body()
    normalized = normalize_request(
        request.method,
        request_target(request.scope),
        request.headers.items(),
        body,
    )

    return await processor.process_request(normalized, sink, timeout)


def create_app(executor_config: Optional[ExecutorConfig] = None) -> FastAPI:
    executor_config = executor_config or config

    # Docs routes are disabled: every path belongs to the user function.
    app = FastAPI(
        title="Open Runtimes Executor",
        version="1.0.0",
        lifespan=lambda app: manage_lifespan(app, executor_config),
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    build_services(app, executor_config)
    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.BIND_HOST, port=config.PORT, log_config=None)
