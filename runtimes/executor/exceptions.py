"""
Where: runtimes/executor/exceptions.py
What: Exception handler registration.
Why: Keep error handling setup isolated from route and lifecycle concerns.
"""

from fastapi import FastAPI

from .core.exceptions import (
    RequestRejectedError,
    global_exception_handler,
    request_rejected_handler,
)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(RequestRejectedError, request_rejected_handler)
