"""
Dependency Injection for the executor API.

Manage request handler dependencies using FastAPI Depends.
"""

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from ..config import ExecutorConfig
from ..core.exceptions import TimeoutHeaderInvalid, Unauthorized
from ..services.processor import FunctionRequestProcessor


# ==========================================
# 1. Service Accessors
# ==========================================


def get_executor_config(request: Request) -> ExecutorConfig:
    return request.app.state.config


def get_request_processor(request: Request) -> FunctionRequestProcessor:
    return request.app.state.request_processor


ExecutorConfigDep = Annotated[ExecutorConfig, Depends(get_executor_config)]
RequestProcessorDep = Annotated[FunctionRequestProcessor, Depends(get_request_processor)]


# ==========================================
# 2. Logic Dependencies (Verification)
# ==========================================


def parse_timeout(value: Optional[str]) -> Optional[int]:
    """
    Parse x-open-runtimes-timeout.

    Returns:
        Deadline in seconds, or None when the header is absent or empty

    Raises:
        TimeoutHeaderInvalid: not a positive integer
    """
    if value is None or value.strip() == "":
        return None

    value = value.strip()
    if not (value.isascii() and value.isdigit()) or int(value) <= 0:
        raise TimeoutHeaderInvalid()
    return int(value)


async def resolve_timeout(
    x_open_runtimes_timeout: Optional[str] = Header(None),
) -> Optional[int]:
    return parse_timeout(x_open_runtimes_timeout)


async def verify_secret(
    executor_config: ExecutorConfigDep,
    x_open_runtimes_secret: Optional[str] = Header(None),
) -> None:
    """
    Compare x-open-runtimes-secret with the configured secret.

    Raises:
        Unauthorized: a secret is configured and the header does not match
    """
    expected = executor_config.OPEN_RUNTIMES_SECRET
    if not expected:
        return

    provided = x_open_runtimes_secret or ""
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise Unauthorized()


TimeoutDep = Annotated[Optional[int], Depends(resolve_timeout)]
SecretDep = Annotated[None, Depends(verify_secret)]
