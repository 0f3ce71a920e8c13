"""
Function context.

The value passed to user code: the request view (context.req), the response
builder (context.res) and the context.log() / context.error() handles.
"""

import json
from functools import cached_property
from typing import Any, Dict, Optional, Union

from runtimes.executor.core.exceptions import BodyDecodeError, ProtocolError
from runtimes.executor.models.output import Output
from runtimes.executor.models.request import NormalizedRequest
from runtimes.executor.services.log_sink import LogSink
from runtimes.executor.services.stream import ResponseStream

BINARY_CONTENT_TYPES = ("audio/", "video/", "octet", "binary")


def dump_json(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


class ContextRequest:
    """
    Read-only request view.

    Body accessors decode on first access and keep the result for the request's lifetime.
    """

    def __init__(self, request: NormalizedRequest):
        self._request = request

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def scheme(self) -> str:
        return self._request.scheme

    @property
    def host(self) -> str:
        return self._request.host

    @property
    def port(self) -> int:
        return self._request.port

    @property
    def path(self) -> str:
        return self._request.path

    @property
    def query(self) -> Dict[str, str]:
        # Copies keep the underlying request immutable.
        return dict(self._request.query)

    @property
    def query_string(self) -> str:
        return self._request.query_string

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._request.headers)

    @property
    def url(self) -> str:
        return self._request.url

    @property
    def content_type(self) -> str:
        return self._request.headers.get("content-type", "text/plain").lower()

    @property
    def body(self) -> Any:
        """Body decoded according to content-type: JSON, bytes, or text."""
        if "application/json" in self.content_type:
            return self.body_json

        if any(marker in self.content_type for marker in BINARY_CONTENT_TYPES):
            return self.body_binary

        return self.body_text

    @property
    def body_raw(self) -> str:
        return self.body_text

    @property
    def body_binary(self) -> bytes:
        return self._request.body

    @cached_property
    def body_text(self) -> str:
        try:
            return self._request.body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BodyDecodeError("text", e) from e

    @cached_property
    def body_json(self) -> Any:
        try:
            return json.loads(self.body_text)
        except json.JSONDecodeError as e:
            raise BodyDecodeError("json", e) from e


class ContextResponse:
    """
    Response builder.

    Buffered helpers return a fresh Output; start/write_*/end drive the chunked stream.
    """

    def __init__(self, stream: ResponseStream):
        self._stream = stream

    def binary(
        self, bytes: bytes, status_code: int = 200, headers: Optional[Dict[str, Any]] = None
    ) -> Output:
        return Output(
            body=bytes,
            status_code=status_code,
            headers=dict(headers or {}),
            chunked=False,
        )

    def text(
        self,
        body: Union[str, bytes],
        status_code: int = 200,
        headers: Optional[Dict[str, Any]] = None,
    ) -> Output:
        if isinstance(body, str):
            body = body.encode("utf-8")
        return self.binary(body, status_code, headers)

    def send(
        self,
        body: Union[str, bytes],
        status_code: int = 200,
        headers: Optional[Dict[str, Any]] = None,
    ) -> Output:
        return self.text(body, status_code, headers)

    def json(
        self, obj: Any, status_code: int = 200, headers: Optional[Dict[str, Any]] = None
    ) -> Output:
        headers = {**(headers or {}), "content-type": "application/json"}
        return self.text(dump_json(obj), status_code, headers)

    def empty(self) -> Output:
        return self.text("", 204, {})

    def redirect(
        self, url: str, status_code: int = 301, headers: Optional[Dict[str, Any]] = None
    ) -> Output:
        headers = {**(headers or {}), "location": url}
        return self.text("", status_code, headers)

    def start(self, status_code: int = 200, headers: Optional[Dict[str, Any]] = None) -> None:
        self._stream.start(status_code, headers)

    def write_text(self, body: str) -> None:
        self.write_binary(body.encode("utf-8"))

    def write_json(self, obj: Any) -> None:
        self.write_text(dump_json(obj))

    def write_binary(self, bytes: bytes) -> None:
        self._stream.write(bytes)

    def end(self, headers: Optional[Dict[str, Any]] = None) -> Output:
        if not self._stream.started:
            raise ProtocolError("You must call res.start() to start a chunk response.")

        return Output(
            body=b"",
            status_code=self._stream.status_code,
            headers=dict(headers or {}),
            chunked=True,
        )


class Context:
    def __init__(self, req: ContextRequest, res: ContextResponse, sink: LogSink):
        self.req = req
        self.res = res
        self._sink = sink

    def log(self, message: Any) -> None:
        self._sink.log(message)

    def error(self, message: Any) -> None:
        self._sink.error(message)


def build_context(request: NormalizedRequest, sink: LogSink, stream: ResponseStream) -> Context:
    return Context(ContextRequest(request), ContextResponse(stream), sink)
