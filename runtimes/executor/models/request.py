"""
Normalized request model.

Language-neutral view of an incoming HTTP request, decoupled from Starlette's Request.
"""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORTS = {"http": 80, "https": 443}


class NormalizedRequest(BaseModel):
    """
    Canonical fields of one request.

    headers never contain reserved x-open-runtimes-* entries and all keys are lower-case.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    scheme: str = "http"
    host: str = ""
    port: int = 80
    path: str = "/"
    query: Dict[str, str] = Field(default_factory=dict)
    query_string: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    @property
    def default_port(self) -> int:
        return DEFAULT_PORTS.get(self.scheme, 80)

    @property
    def url(self) -> str:
        port = "" if self.port == self.default_port else f":{self.port}"
        query = f"?{self.query_string}" if self.query_string else ""
        return f"{self.scheme}://{self.host}{port}{self.path}{query}"
