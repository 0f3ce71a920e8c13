"""
Response Materializer

Turns the final Output and the LogSink into wire-level headers and a response.
"""

import logging
from typing import Dict

from fastapi.responses import Response

from runtimes.executor.core.headers import public_headers
from runtimes.executor.models.output import Output
from runtimes.executor.services.log_sink import LogSink

logger = logging.getLogger("executor.materializer")

DEFAULT_CONTENT_TYPE = "text/plain"
DEFAULT_CHARSET = "; charset=utf-8"


class ResponseMaterializer:
    def headers(self, output: Output, sink: LogSink) -> Dict[str, str]:
        """
        Final header map: reserved names dropped, keys lower-cased, content-type
        charset-qualified, logs and errors always set.
        """
        headers = public_headers(output.headers)

        content_type = headers.get("content-type", DEFAULT_CONTENT_TYPE)
        if not content_type.startswith("multipart/") and "charset=" not in content_type:
            content_type += DEFAULT_CHARSET
        headers["content-type"] = content_type

        headers.update(sink.export_headers())
        return headers

    def render(self, output: Output, sink: LogSink) -> Response:
        """Buffered response: leading headers, status code and body in one go."""
        return Response(
            content=output.body,
            status_code=output.status_code,
            headers=self.headers(output, sink),
        )

    def trailers(self, output: Output, sink: LogSink) -> Dict[str, str]:
        """Headers closing a chunked response; its status and leading headers were sent by start()."""
        return self.headers(output, sink)
