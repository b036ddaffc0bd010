from __future__ import annotations

import json
from http.client import HTTPConnection, HTTPSConnection
from typing import Any
from urllib.parse import urlparse


def build_base_url(address: str) -> str:
    trimmed = address.strip().rstrip("/")
    if not trimmed:
        return ""
    if "://" in trimmed:
        return trimmed
    return f"http://{trimmed}"


def is_json_content_type(content_type: str) -> bool:
    return "application/json" in (content_type or "").lower()


def request_json(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
    timeout_s: float = 3.0,
) -> tuple[int, str, Any]:
    """Send one request and return ``(status, content_type, payload)``.

    ``payload`` is the decoded JSON document, ``None`` for an empty body, or
    an ``{"error": ...}`` dict when the body is not JSON.
    """
    parsed = urlparse(url)
    if not parsed.hostname:
        raise ValueError("missing hostname")
    if parsed.scheme == "https":
        conn = HTTPSConnection(parsed.hostname, parsed.port or 443, timeout=timeout_s)
    else:
        conn = HTTPConnection(parsed.hostname, parsed.port or 80, timeout=timeout_s)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    body_bytes = None
    if body is not None:
        body_bytes = json.dumps(body, ensure_ascii=False).encode("utf-8")
    request_headers = {"Accept": "application/json"}
    if body_bytes is not None:
        request_headers["Content-Type"] = "application/json"
        request_headers["Content-Length"] = str(len(body_bytes))
    if headers:
        request_headers.update(headers)
    status: int | None = None
    content_type = ""
    payload: Any = None
    try:
        conn.request(method, path, body=body_bytes, headers=request_headers)
        resp = conn.getresponse()
        status = int(resp.status)
        content_type = resp.getheader("Content-Type") or ""
        raw = resp.read()
        if raw:
            try:
                payload = json.loads(raw.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                snippet = raw[:240].decode("utf-8", errors="replace").strip()
                payload = {
                    "error": f"non_json_response: {snippet}" if snippet else "non_json_response"
                }
    finally:
        conn.close()
    assert status is not None
    return status, content_type, payload
