"""
Invocation output model.

The single value a user function hands back to the executor.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class Output(BaseModel):
    """
    Result of one function call: body, status, headers and the chunked flag.

    For chunked outputs the headers are sent as trailers and body is unused.
    """

    body: bytes = b""
    status_code: int = 200
    headers: Dict[str, Any] = Field(default_factory=dict)
    chunked: bool = False
