"""
Where: runtimes/executor/lifecycle.py
What: Executor startup/shutdown and service wiring.
Why: Keep main.py focused on app assembly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .config import ExecutorConfig
from .core.capture import install_stream_capture, uninstall_stream_capture
from .services.invoker import FunctionInvoker
from .services.loader import FunctionLoader
from .services.materializer import ResponseMaterializer
from .services.processor import FunctionRequestProcessor

logger = logging.getLogger("executor.main")


def build_services(app: FastAPI, executor_config: ExecutorConfig) -> None:
    """Store the per-process services in app.state for DI."""
    loader = FunctionLoader(
        code_path=executor_config.USER_CODE_PATH,
        entrypoint=executor_config.OPEN_RUNTIMES_ENTRYPOINT,
    )
    invoker = FunctionInvoker(loader)

    app.state.config = executor_config
    app.state.request_processor = FunctionRequestProcessor(invoker, ResponseMaterializer())


@asynccontextmanager
async def manage_lifespan(app: FastAPI, executor_config: ExecutorConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    install_stream_capture()
    logger.info(
        "Executor initialized",
        extra={
            "entrypoint": executor_config.OPEN_RUNTIMES_ENTRYPOINT,
            "code_path": executor_config.USER_CODE_PATH,
            "secret_configured": bool(executor_config.OPEN_RUNTIMES_SECRET),
        },
    )

    try:
        yield
    finally:
        uninstall_stream_capture()
        logger.info("Executor shutting down.")
