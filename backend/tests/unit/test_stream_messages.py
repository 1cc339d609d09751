"""Unit tests for parsing and encoding NDJSON generation stream messages."""

import json

import pytest

from devsketch.domain.entities import (
    StreamCodeFragment,
    StreamEnd,
    StreamError,
    StreamIgnored,
    StreamMessageParseError,
    StreamStart,
    StreamSuccess,
    StreamToken,
    encode_stream_message,
    parse_stream_message,
)


def test_parses_control_messages():
    assert isinstance(parse_stream_message('{"message": "start"}'), StreamStart)
    assert isinstance(parse_stream_message('{"message": "success"}'), StreamSuccess)
    assert isinstance(parse_stream_message('{"message": "end"}'), StreamEnd)


def test_parses_token():
    message = parse_stream_message('{"message": "token", "designToken": "abc"}')
    assert message == StreamToken(design_token="abc")


def test_parses_error_with_kind():
    message = parse_stream_message(
        '{"message": "error", "error": "Rate limit exceeded", "errorKind": "rate_limited"}'
    )
    assert message == StreamError(error="Rate limit exceeded", error_kind="rate_limited")


def test_parses_code_fragment():
    line = json.dumps({"code": "import React", "isLast": False, "chunkIndex": 0, "totalChunks": 3})
    message = parse_stream_message(line)

    assert message == StreamCodeFragment(
        code="import React", chunk_index=0, total_chunks=3, is_last=False
    )


def test_unknown_message_type_is_ignored():
    message = parse_stream_message('{"message": "info", "info": "warming up"}')
    assert isinstance(message, StreamIgnored)
    assert message.raw["info"] == "warming up"


@pytest.mark.parametrize(
    "line",
    [
        "not json",
        "[1, 2, 3]",
        '{"foo": "bar"}',
        '{"message": "token"}',
        '{"code": 42}',
        '{"code": "x", "chunkIndex": "first"}',
    ],
)
def test_rejects_malformed_lines(line):
    with pytest.raises(StreamMessageParseError):
        parse_stream_message(line)


def test_encoded_messages_parse_back():
    messages = [
        StreamStart(info="Code generation started"),
        StreamToken(design_token="tok-1"),
        StreamCodeFragment(code="export default X;", chunk_index=2, total_chunks=3, is_last=True),
        StreamError(error="Generation timed out.", error_kind="upstream_timeout"),
        StreamSuccess(),
        StreamEnd(),
    ]
    for message in messages:
        assert parse_stream_message(encode_stream_message(message)) == message
