from __future__ import annotations

import pytest

from snackcount.sync import http_client


class _ConnRequestFails:
    def __init__(self, *args, **kwargs) -> None:
        self.closed = False

    def request(self, method, path, body=None, headers=None) -> None:
        raise RuntimeError("boom")

    def close(self) -> None:
        self.closed = True


class _ConnReadFails:
    def __init__(self, *args, **kwargs) -> None:
        self.closed = False

    def request(self, method, path, body=None, headers=None) -> None:
        return

    def getresponse(self):
        return _RespReadFails()

    def close(self) -> None:
        self.closed = True


class _RespReadFails:
    status = 200

    def getheader(self, name, default=None):
        return "application/json"

    def read(self) -> bytes:
        raise RuntimeError("read failed")


class _ConnFixed:
    def __init__(self, status: int, content_type: str, raw: bytes) -> None:
        self.status = status
        self.content_type = content_type
        self.raw = raw
        self.sent: dict = {}
        self.closed = False

    def request(self, method, path, body=None, headers=None) -> None:
        self.sent = {"method": method, "path": path, "body": body, "headers": headers}

    def getresponse(self):
        conn = self

        class _Resp:
            status = conn.status

            def getheader(self, name, default=None):
                return conn.content_type

            def read(self) -> bytes:
                return conn.raw

        return _Resp()

    def close(self) -> None:
        self.closed = True


def test_request_json_closes_connection_when_request_raises(monkeypatch) -> None:
    conn = _ConnRequestFails()
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    with pytest.raises(RuntimeError, match="boom"):
        http_client.request_json("GET", "http://127.0.0.1:5757/ranking")

    assert conn.closed is True


def test_request_json_closes_connection_when_response_read_raises(monkeypatch) -> None:
    conn = _ConnReadFails()
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    with pytest.raises(RuntimeError, match="read failed"):
        http_client.request_json("GET", "http://127.0.0.1:5757/ranking")

    assert conn.closed is True


def test_request_json_returns_list_payload_and_content_type(monkeypatch) -> None:
    conn = _ConnFixed(200, "application/json; charset=utf-8", b'[{"id": "u1"}]')
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    status, content_type, payload = http_client.request_json(
        "POST", "http://127.0.0.1:5757/records?x=1", body={"userId": "u1"}
    )

    assert status == 200
    assert http_client.is_json_content_type(content_type)
    assert payload == [{"id": "u1"}]
    assert conn.sent["path"] == "/records?x=1"
    assert conn.sent["headers"]["Content-Type"] == "application/json"
    assert conn.sent["body"] == b'{"userId": "u1"}'
    assert conn.closed is True


def test_request_json_wraps_non_json_body(monkeypatch) -> None:
    conn = _ConnFixed(502, "text/html", b"<h1>Bad gateway</h1>")
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    status, content_type, payload = http_client.request_json("GET", "http://h/ranking")

    assert status == 502
    assert content_type == "text/html"
    assert payload == {"error": "non_json_response: <h1>Bad gateway</h1>"}


def test_request_json_requires_hostname() -> None:
    with pytest.raises(ValueError, match="missing hostname"):
        http_client.request_json("GET", "/ranking")


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("localhost:5757", "http://localhost:5757"),
        ("127.0.0.1:5757", "http://127.0.0.1:5757"),
        ("https://snacks.example/", "https://snacks.example"),
        ("  ", ""),
    ],
)
def test_build_base_url(address: str, expected: str) -> None:
    assert http_client.build_base_url(address) == expected
