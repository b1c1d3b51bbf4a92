"""Tests for Content-Length framing."""

import json

import pytest

from renamepad.analysis.json_rpc import (
    FrameError,
    MessageParser,
    decode_frame_body,
    encode_message,
    make_notification,
    parse_frame_header,
)


def test_encode_uses_byte_length():
    frame = encode_message(make_notification("finishRefactoring", {"newName": "größe"}))
    header, body = frame.split(b"\r\n\r\n", 1)
    assert header == f"Content-Length: {len(body)}".encode("ascii")
    assert json.loads(body.decode("utf-8"))["params"]["newName"] == "größe"


def test_notification_has_no_id():
    payload = make_notification("cancelRefactoring", {"session": 1})
    assert payload == {"jsonrpc": "2.0", "method": "cancelRefactoring", "params": {"session": 1}}
    assert make_notification("startRefactoring", None)["params"] == {}


def test_parser_handles_split_and_batched_frames():
    first = encode_message(make_notification("availabilityUpdate", {"names": ["renameVariable"]}))
    second = encode_message(make_notification("refactorResult", {"success": True}))
    stream = first + second
    parser = MessageParser()

    out = parser.feed(stream[:7])
    out += parser.feed(stream[7 : len(first) + 3])
    out += parser.feed(stream[len(first) + 3 :])

    assert [msg["method"] for msg in out] == ["availabilityUpdate", "refactorResult"]
    assert parser.pending_bytes() == 0


def test_parser_skips_bad_frames():
    parser = MessageParser()
    bad_header = b"Content-Length: nope\r\n\r\n"
    bad_body = b"Content-Length: 3\r\n\r\n{x}"
    not_object = b"Content-Length: 2\r\n\r\n[]"
    good = encode_message(make_notification("refactorResult", {"success": False}))

    out = parser.feed(bad_header + bad_body + not_object + good)

    assert len(out) == 1
    assert out[0]["params"] == {"success": False}


def test_parser_reset_drops_partial_frame():
    parser = MessageParser()
    parser.feed(b"Content-Length: 10\r\n\r\n{\"a\"")
    assert parser.pending_bytes() > 0

    parser.reset()
    out = parser.feed(encode_message(make_notification("refactorResult", {"success": True})))
    assert len(out) == 1


def test_header_names_are_case_insensitive_and_extras_ignored():
    block = b"Content-Type: application/vscode-jsonrpc\r\ncontent-length: 42"
    assert parse_frame_header(block) == 42


@pytest.mark.parametrize("block", [b"", b"Content-Type: x", b"Content-Length: -1", b"Content-Length: 1e3"])
def test_bad_headers_raise(block):
    with pytest.raises(FrameError):
        parse_frame_header(block)


def test_decode_frame_body_requires_object():
    assert decode_frame_body(b'{"method":"x"}') == {"method": "x"}
    with pytest.raises(FrameError):
        decode_frame_body(b"[1]")
    with pytest.raises(FrameError):
        decode_frame_body(b"\xff")
