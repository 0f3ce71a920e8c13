import io
import logging
import sys

from runtimes.executor.core.capture import (
    CaptureLogHandler,
    CapturingStream,
    capture_output,
    install_stream_capture,
    uninstall_stream_capture,
)


def _capture_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, CaptureLogHandler)]


def test_capturing_stream_routes_writes_to_current_buffer():
    original = io.StringIO()
    stream = CapturingStream(original)

    stream.write("before ")
    with capture_output() as buffer:
        stream.write("inside")
        stream.writelines([" more"])
    stream.write("after")

    assert buffer.getvalue() == "inside more"
    assert original.getvalue() == "before after"


def test_capturing_stream_delegates_attributes():
    original = io.StringIO()

    assert CapturingStream(original).getvalue is not None
    assert CapturingStream(original).closed is False


def test_install_is_idempotent_and_reversible():
    stdout, stderr = sys.stdout, sys.stderr
    try:
        install_stream_capture()
        install_stream_capture()

        assert isinstance(sys.stdout, CapturingStream)
        assert sys.stdout.original is stdout
        assert len(_capture_handlers()) == 1

        with capture_output() as buffer:
            print("captured line")
        assert buffer.getvalue() == "captured line\n"
    finally:
        uninstall_stream_capture()

    assert sys.stdout is stdout
    assert sys.stderr is stderr
    assert _capture_handlers() == []


def test_log_records_are_captured_only_inside_invocation():
    user_logger = logging.getLogger("user.function")
    try:
        install_stream_capture()

        with capture_output() as buffer:
            user_logger.warning("inside")
            CaptureLogHandler().handle(
                logging.makeLogRecord({"name": "executor.invoker", "msg": "runtime record"})
            )
        user_logger.warning("outside")
    finally:
        uninstall_stream_capture()

    assert buffer.getvalue() == "WARNING:user.function:inside\n"
