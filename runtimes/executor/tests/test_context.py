import pytest

from runtimes.executor.core.exceptions import BodyDecodeError, ProtocolError
from runtimes.executor.models.request import NormalizedRequest
from runtimes.executor.services.context import build_context
from runtimes.executor.services.log_sink import LogSink
from runtimes.executor.services.stream import ResponseStream


def _context(body: bytes = b"", content_type: str = "", sink: LogSink = None):
    headers = {"content-type": content_type} if content_type else {}
    request = NormalizedRequest(method="POST", headers=headers, body=body)
    return build_context(request, sink or LogSink(), ResponseStream())


@pytest.mark.asyncio
async def test_body_dispatches_on_content_type():
    assert _context(b'{"a": 1}', "application/json; charset=utf-8").req.body == {"a": 1}
    assert _context(b"\x00\xff", "application/octet-stream").req.body == b"\x00\xff"
    assert _context(b"\x00", "video/mp4").req.body == b"\x00"
    assert _context(b"hello", "text/html").req.body == "hello"
    assert _context(b"hello").req.body == "hello"


@pytest.mark.asyncio
async def test_body_accessors_are_independent():
    context = _context(b'{"a": 1}', "text/plain")

    assert context.req.body_text == '{"a": 1}'
    assert context.req.body_raw == '{"a": 1}'
    assert context.req.body_binary == b'{"a": 1}'
    assert context.req.body_json == {"a": 1}


@pytest.mark.asyncio
async def test_body_json_is_memoized():
    context = _context(b'{"items": []}', "application/json")

    first = context.req.body_json
    first["items"].append(1)

    assert context.req.body is first
    assert context.req.body_json == {"items": [1]}


@pytest.mark.asyncio
async def test_decode_errors_are_deferred_until_access():
    context = _context(b"not json", "application/json")

    assert context.req.body_text == "not json"
    with pytest.raises(BodyDecodeError):
        context.req.body
    with pytest.raises(BodyDecodeError):
        context.req.body_json


@pytest.mark.asyncio
async def test_invalid_utf8_fails_only_text_accessors():
    context = _context(b"\xff\xfe", "text/plain")

    assert context.req.body_binary == b"\xff\xfe"
    with pytest.raises(BodyDecodeError):
        context.req.body_text


@pytest.mark.asyncio
async def test_buffered_builders():
    res = _context().res

    text = res.text("hi", 201, {"x-a": "1"})
    assert (text.body, text.status_code, text.headers, text.chunked) == (
        b"hi",
        201,
        {"x-a": "1"},
        False,
    )

    assert res.send("hi").body == b"hi"
    assert res.binary(b"\x00").body == b"\x00"

    json_output = res.json({"a": 1, "b": "é"})
    assert json_output.body == '{"a":1,"b":"é"}'.encode("utf-8")
    assert json_output.headers == {"content-type": "application/json"}

    empty = res.empty()
    assert (empty.body, empty.status_code) == (b"", 204)

    redirect = res.redirect("https://example.com")
    assert redirect.status_code == 301
    assert redirect.headers == {"location": "https://example.com"}


@pytest.mark.asyncio
async def test_builders_do_not_mutate_caller_headers():
    res = _context().res
    headers = {"x-a": "1"}

    res.json({}, 200, headers)
    res.redirect("/elsewhere", 302, headers)

    assert headers == {"x-a": "1"}


@pytest.mark.asyncio
async def test_start_twice_is_a_protocol_error():
    res = _context().res

    res.start()
    with pytest.raises(ProtocolError, match="only call res.start\\(\\) once"):
        res.start()


@pytest.mark.asyncio
async def test_write_and_end_before_start_are_protocol_errors():
    res = _context().res

    with pytest.raises(ProtocolError):
        res.write_text("x")
    with pytest.raises(ProtocolError):
        res.write_binary(b"x")
    with pytest.raises(ProtocolError):
        res.end()


@pytest.mark.asyncio
async def test_start_applies_stream_defaults_and_drops_reserved_headers():
    stream = ResponseStream()
    context = build_context(NormalizedRequest(method="GET"), LogSink(), stream)

    context.res.start(206, {"Cache-Control": "max-age=5", "x-open-runtimes-logs": "x"})

    assert stream.started is True
    assert stream.status_code == 206
    assert stream.headers == {
        "cache-control": "max-age=5",
        "content-type": "text/event-stream",
        "connection": "keep-alive",
        "transfer-encoding": "chunked",
    }


@pytest.mark.asyncio
async def test_stream_chunks_and_end_output():
    stream = ResponseStream()
    context = build_context(NormalizedRequest(method="GET"), LogSink(), stream)

    context.res.start()
    context.res.write_text("a")
    context.res.write_json({"b": 2})
    output = context.res.end({"x-done": "1"})
    stream.close()

    chunks = [chunk async for chunk in stream.chunks()]
    assert chunks == [b"a", b'{"b":2}']
    assert output.chunked is True
    assert output.headers == {"x-done": "1"}


@pytest.mark.asyncio
async def test_writes_after_close_are_discarded():
    stream = ResponseStream()
    stream.start()
    stream.close()

    stream.write(b"late")

    assert [chunk async for chunk in stream.chunks()] == []


@pytest.mark.asyncio
async def test_log_and_error_stringify():
    sink = LogSink()
    context = _context(sink=sink)

    context.log("text")
    context.log({"a": [1, 2]})
    context.log(["x"])
    context.log(3.5)
    context.log(None)
    context.error(ValueError("bad"))

    assert sink.logs == ["text", '{"a": [1, 2]}', '["x"]', "3.5", "None"]
    assert sink.errors == ["bad"]


@pytest.mark.asyncio
async def test_request_view_cannot_mutate_request():
    request = NormalizedRequest(method="GET", query={"a": "1"}, headers={"x-a": "1"})
    context = build_context(request, LogSink(), ResponseStream())

    context.req.query["a"] = "changed"
    context.req.headers["x-b"] = "added"

    assert context.req.query == {"a": "1"}
    assert context.req.headers == {"x-a": "1"}
    assert request.query == {"a": "1"}
    assert request.headers == {"x-a": "1"}
