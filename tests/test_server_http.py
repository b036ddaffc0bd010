from __future__ import annotations

import io
import json

from snackcount.server_http import read_json_body, send_json_response


class DummyHandler:
    def __init__(self, body: bytes = b"", headers: dict[str, str] | None = None) -> None:
        self.headers = headers or {}
        self.rfile = io.BytesIO(body)
        self.wfile = io.BytesIO()
        self.status: int | None = None
        self.response_headers: list[tuple[str, str]] = []
        self.headers_ended = False

    def send_response(self, status: int) -> None:
        self.status = status

    def send_header(self, key: str, value: str) -> None:
        self.response_headers.append((key, value))

    def end_headers(self) -> None:
        self.headers_ended = True


def _header_value(handler: DummyHandler, name: str) -> str | None:
    for key, value in handler.response_headers:
        if key == name:
            return value
    return None


def test_send_json_response_object() -> None:
    handler = DummyHandler()
    payload = {"message": "ok", "count": 2}
    expected_body = json.dumps(payload, ensure_ascii=False).encode("utf-8")

    send_json_response(handler, payload, status=400)

    assert handler.status == 400
    assert _header_value(handler, "Content-Type") == "application/json; charset=utf-8"
    assert _header_value(handler, "Content-Length") == str(len(expected_body))
    assert handler.headers_ended is True
    assert handler.wfile.getvalue() == expected_body


def test_send_json_response_array_keeps_unicode() -> None:
    handler = DummyHandler()
    payload = [{"name": "João", "count": 1}]

    send_json_response(handler, payload)

    assert handler.status == 200
    assert "João" in handler.wfile.getvalue().decode("utf-8")


def test_read_json_body() -> None:
    payload = {"userId": "u1"}
    body = json.dumps(payload).encode("utf-8")
    handler = DummyHandler(body=body, headers={"Content-Length": str(len(body))})

    assert read_json_body(handler) == payload


def test_read_json_body_invalid_or_empty() -> None:
    handler_empty = DummyHandler(body=b"", headers={"Content-Length": "0"})
    assert read_json_body(handler_empty) is None

    handler_invalid = DummyHandler(body=b"not-json", headers={"Content-Length": "8"})
    assert read_json_body(handler_invalid) is None

    body_list = json.dumps([1, 2]).encode("utf-8")
    handler_list = DummyHandler(body=body_list, headers={"Content-Length": str(len(body_list))})
    assert read_json_body(handler_list) is None

    handler_bad_length = DummyHandler(body=b"{}", headers={"Content-Length": "two"})
    assert read_json_body(handler_bad_length) is None


def test_read_json_body_rejects_invalid_utf8() -> None:
    body = b'{"userName": "Jo\xe3o"}'
    handler = DummyHandler(body=body, headers={"Content-Length": str(len(body))})

    assert read_json_body(handler) is None
