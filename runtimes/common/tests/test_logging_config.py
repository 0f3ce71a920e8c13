"""
Where: runtimes/common/tests/test_logging_config.py
What: Unit tests for the JSON formatter and YAML logging setup.
Why: Runtime logs are shipped as single-line JSON with the request ID attached.
"""

import json
import logging
import sys

from runtimes.common.core import logging_config
from runtimes.common.core.logging_config import CustomJsonFormatter
from runtimes.common.core.request_context import clear_request_id, set_request_id


def _record(message="hello", **extra):
    record = logging.LogRecord(
        name="executor.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_single_line_json():
    output = CustomJsonFormatter().format(_record("line one\nline two"))

    assert "\n" not in output
    data = json.loads(output)
    assert data["level"] == "INFO"
    assert data["logger"] == "executor.test"
    assert data["message"] == "line one\nline two"
    assert data["_time"].endswith("+00:00")


def test_formatter_includes_extra_fields_and_request_id():
    set_request_id("req-123")
    try:
        data = json.loads(CustomJsonFormatter().format(_record(status=200, path="/x")))
    finally:
        clear_request_id()

    assert data["request_id"] == "req-123"
    assert data["status"] == 200
    assert data["path"] == "/x"


def test_formatter_prefers_explicit_request_id():
    set_request_id("from-context")
    try:
        data = json.loads(CustomJsonFormatter().format(_record(request_id="explicit")))
    finally:
        clear_request_id()

    assert data["request_id"] == "explicit"


def test_formatter_includes_exception():
    try:
        raise ValueError("bad value")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    data = json.loads(CustomJsonFormatter().format(record))

    assert "ValueError: bad value" in data["exception"]


def test_setup_logging_substitutes_log_level(tmp_path, monkeypatch):
    config_file = tmp_path / "logging.yml"
    config_file.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  runtimes.test.substitution:\n"
        "    level: ${LOG_LEVEL}\n"
    )
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    logging_config.setup_logging(str(config_file))

    assert logging.getLogger("runtimes.test.substitution").level == logging.DEBUG


def test_setup_logging_falls_back_when_file_is_missing(tmp_path, monkeypatch):
    called = {}

    def fake_basic_config(**kwargs):
        called.update(kwargs)

    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setattr(logging_config.logging, "basicConfig", fake_basic_config)

    logging_config.setup_logging(str(tmp_path / "missing.yml"))

    assert called == {"level": "WARNING"}


def test_setup_logging_explicit_level_overrides_environment(tmp_path, monkeypatch):
    config_file = tmp_path / "logging.yml"
    config_file.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  runtimes.test.explicit:\n"
        "    level: ${LOG_LEVEL}\n"
    )
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    logging_config.setup_logging(str(config_file), log_level="ERROR")

    assert logging.getLogger("runtimes.test.explicit").level == logging.ERROR
