from __future__ import annotations

import threading
from collections.abc import Iterator
from http.server import HTTPServer
from pathlib import Path

import pytest

from snackcount.server import build_handler


@pytest.fixture(autouse=True)
def _isolate_local_state(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SNACKCOUNT_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("SNACKCOUNT_IDENTITY", str(tmp_path / "identity.json"))
    monkeypatch.setenv("SNACKCOUNT_DB", str(tmp_path / "counter.sqlite"))
    monkeypatch.setenv("SNACKCOUNT_DATA_FILE", str(tmp_path / "data" / "records.json"))
    # Nothing listens on the discard port; unreachable unless a test overrides it.
    monkeypatch.setenv("SNACKCOUNT_SERVER_URL", "http://127.0.0.1:9")


def _start_server(data_file: Path) -> tuple[HTTPServer, int]:
    server = HTTPServer(("127.0.0.1", 0), build_handler(data_file))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, int(server.server_address[1])


@pytest.fixture
def records_server(tmp_path: Path) -> Iterator[tuple[str, Path]]:
    data_file = tmp_path / "server" / "records.json"
    server, port = _start_server(data_file)
    try:
        yield f"http://127.0.0.1:{port}", data_file
    finally:
        server.shutdown()
        server.server_close()
