"""
Stdout/stderr and logging capture.

print(), direct writes to sys.stdout / sys.stderr and records sent through the logging
module by user code are collected per request instead of leaking into the process
output. The proxies and the root logger handler are installed once for the whole
process; the buffer of the current request travels in a ContextVar, so concurrent
requests never share or swap global state.
"""

import io
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterable, Iterator, Optional, TextIO

_capture_var: ContextVar[Optional[io.StringIO]] = ContextVar("stream_capture", default=None)

RUNTIME_LOGGER_PREFIX = "executor"
CAPTURE_LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


class CapturingStream:
    """
    Redirects writes to the capture buffer of the current context.
    Falls back to the wrapped stream outside of an invocation.
    """

    def __init__(self, original: TextIO):
        self.original = original

    def write(self, text: str) -> int:
        buffer = _capture_var.get()
        if buffer is None:
            return self.original.write(text)
        return buffer.write(text)

    def writelines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        if _capture_var.get() is None:
            self.original.flush()

    def __getattr__(self, name: str):
        return getattr(self.original, name)


class CaptureLogHandler(logging.Handler):
    """
    Root logger handler collecting user code log records into the capture buffer.
    Records emitted outside of an invocation, and the runtime's own records, are ignored.
    """

    def __init__(self, level: int = logging.NOTSET):
        super().__init__(level)
        self.setFormatter(logging.Formatter(CAPTURE_LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        buffer = _capture_var.get()
        if buffer is None:
            return
        if record.name == RUNTIME_LOGGER_PREFIX or record.name.startswith(
            RUNTIME_LOGGER_PREFIX + "."
        ):
            return

        try:
            buffer.write(self.format(record) + "\n")
        except Exception:
            self.handleError(record)


def _capture_log_handler() -> Optional[CaptureLogHandler]:
    for handler in logging.getLogger().handlers:
        if isinstance(handler, CaptureLogHandler):
            return handler
    return None


def install_stream_capture() -> None:
    """Wrap sys.stdout and sys.stderr and hook the root logger. Safe to call more than once."""
    if not isinstance(sys.stdout, CapturingStream):
        sys.stdout = CapturingStream(sys.stdout)
    if not isinstance(sys.stderr, CapturingStream):
        sys.stderr = CapturingStream(sys.stderr)
    if _capture_log_handler() is None:
        logging.getLogger().addHandler(CaptureLogHandler())


def uninstall_stream_capture() -> None:
    if isinstance(sys.stdout, CapturingStream):
        sys.stdout = sys.stdout.original
    if isinstance(sys.stderr, CapturingStream):
        sys.stderr = sys.stderr.original

    handler = _capture_log_handler()
    if handler is not None:
        logging.getLogger().removeHandler(handler)


@contextmanager
def capture_output(buffer: Optional[io.StringIO] = None) -> Iterator[io.StringIO]:
    """Route captured writes of the current context into buffer."""
    buffer = buffer if buffer is not None else io.StringIO()
    token = _capture_var.set(buffer)
    try:
        yield buffer
    finally:
        _capture_var.reset(token)
