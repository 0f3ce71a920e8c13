"""
Log Sink

Collects context.log() and context.error() entries of one invocation and exports
them as the x-open-runtimes-logs / x-open-runtimes-errors response headers.
"""

import json
import traceback
from typing import Any, Dict, List
from urllib.parse import quote

from runtimes.executor.core.headers import ERRORS_HEADER, LOGS_HEADER

# Characters left alone by JavaScript's encodeURIComponent (besides alphanumerics and "-_.").
_URI_COMPONENT_SAFE = "!~*'()"

UNSUPPORTED_LOGS_SEPARATOR = "-" * 76
UNSUPPORTED_LOGS_NOTICE = (
    "Unsupported logs detected. Use context.log() or context.error() for logging."
)


def stringify(message: Any) -> str:
    """Render one log entry; containers are written as JSON text."""
    if isinstance(message, (dict, list, tuple)):
        return json.dumps(message, ensure_ascii=False, default=str)
    return str(message)


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


class LogSink:
    """Append-only logs and errors of a single request."""

    def __init__(self):
        self.logs: List[str] = []
        self.errors: List[str] = []

    def log(self, message: Any) -> None:
        self.logs.append(stringify(message))

    def error(self, message: Any) -> None:
        self.errors.append(stringify(message))

    def add_unsupported_logs(self, captured: str) -> None:
        """
        Append output written outside context.log()/context.error() as an advisory block.
        """
        if not captured:
            return

        self.log("")
        self.log(UNSUPPORTED_LOGS_SEPARATOR)
        self.log(UNSUPPORTED_LOGS_NOTICE)
        self.log(UNSUPPORTED_LOGS_SEPARATOR)
        self.log(captured)
        self.log(UNSUPPORTED_LOGS_SEPARATOR)

    def export_headers(self) -> Dict[str, str]:
        return {
            LOGS_HEADER: encode_uri_component("\n".join(self.logs)),
            ERRORS_HEADER: encode_uri_component("\n".join(self.errors)),
        }

    @staticmethod
    def describe(exc: BaseException) -> str:
        """Full traceback of an exception, or its message when it has none."""
        if exc.__traceback__ is None:
            return f"{type(exc).__name__}: {exc}"
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
