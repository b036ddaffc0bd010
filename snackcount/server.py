from __future__ import annotations

import contextlib
import logging
import os
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .config import DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT
from .records import DEFAULT_DATA_FILE, RecordStore
from .routes import ranking as routes_ranking
from .routes import records as routes_records
from .server_http import read_json_body, send_json_response

logger = logging.getLogger(__name__)


def build_handler(data_file: Path | str | None = None):
    resolved = Path(
        data_file or os.environ.get("SNACKCOUNT_DATA_FILE") or DEFAULT_DATA_FILE
    ).expanduser()

    class RecordsHandler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: object) -> None:  # noqa: A003
            if os.environ.get("SNACKCOUNT_SERVER_LOGS") == "1":
                super().log_message(format, *args)

        def _send_json(self, payload: dict[str, Any] | list[Any], status: int = 200) -> None:
            send_json_response(self, payload, status=status)

        def _read_json(self) -> dict[str, Any] | None:
            return read_json_body(self)

        def _store(self) -> RecordStore:
            return RecordStore(resolved)

        def _not_found(self) -> None:
            self._send_json({"message": "Not found"}, status=404)

        def do_GET(self) -> None:  # noqa: N802
            parsed = urlparse(self.path)
            store = self._store()
            if routes_ranking.handle_get(self, store, parsed.path, parsed.query):
                return
            if routes_records.handle_get(self, store, parsed.path):
                return
            self._not_found()

        def do_POST(self) -> None:  # noqa: N802
            parsed = urlparse(self.path)
            if routes_records.handle_post(self, self._store(), parsed.path):
                return
            self._not_found()

    return RecordsHandler


def make_server(
    host: str = DEFAULT_SERVER_HOST,
    port: int = DEFAULT_SERVER_PORT,
    data_file: Path | str | None = None,
) -> HTTPServer:
    handler = build_handler(data_file)

    class Server(HTTPServer):
        address_family = socket.AF_INET6 if ":" in host else socket.AF_INET

        def server_bind(self) -> None:
            if self.address_family == socket.AF_INET6:
                with contextlib.suppress(OSError):
                    self.socket.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            super().server_bind()

    return Server((host, port), handler)


def run_server(
    host: str = DEFAULT_SERVER_HOST,
    port: int = DEFAULT_SERVER_PORT,
    data_file: Path | str | None = None,
    *,
    stop_event: threading.Event | None = None,
) -> None:
    server = make_server(host, port, data_file)
    logger.info("serving records on %s:%s", host, server.server_address[1])
    if stop_event is None:
        try:
            server.serve_forever()
        finally:
            server.server_close()
        return
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        stop_event.wait()
    finally:
        server.shutdown()
        server.server_close()
