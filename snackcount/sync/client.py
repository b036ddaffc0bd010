from __future__ import annotations

import logging
import threading
from http.client import HTTPException
from urllib.parse import urlencode

from ..records import UserRecord, records_from_json
from .http_client import build_base_url, is_json_content_type, request_json

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (OSError, HTTPException, ValueError)


class SyncClient:
    """Best-effort link between this device and the records server.

    Pushes never raise. The last successfully pulled ranking is kept and
    survives failed pulls; before the first successful pull it is empty.
    """

    def __init__(
        self,
        server_url: str,
        *,
        ranking_limit: int | None = 10,
        timeout_s: float = 3.0,
    ) -> None:
        self.base_url = build_base_url(server_url)
        self.ranking_limit = ranking_limit
        self.timeout_s = timeout_s
        self._lock = threading.Lock()
        self._ranking: list[UserRecord] = []
        self._ranking_loaded = False
        self._closed = False

    @property
    def ranking(self) -> list[UserRecord]:
        with self._lock:
            return list(self._ranking)

    @property
    def ranking_loaded(self) -> bool:
        with self._lock:
            return self._ranking_loaded

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def push(self, user_id: str, name: str, count: int) -> bool:
        if not user_id or not name:
            return False
        body = {"userId": user_id, "userName": name, "count": count}
        try:
            status, _content_type, payload = request_json(
                "POST", f"{self.base_url}/records", body=body, timeout_s=self.timeout_s
            )
        except _TRANSPORT_ERRORS as exc:
            logger.warning("sync push failed for %s: %s", user_id, exc)
            return False
        if not 200 <= status < 300:
            logger.warning("sync push rejected for %s: status=%s body=%r", user_id, status, payload)
            return False
        logger.info("pushed %s=%d", user_id, count)
        self.pull()
        return True

    def pull(self, limit: int | None = None) -> list[UserRecord]:
        effective_limit = limit if limit is not None else self.ranking_limit
        url = f"{self.base_url}/ranking"
        if effective_limit:
            url = f"{url}?{urlencode({'limit': effective_limit})}"
        try:
            status, content_type, payload = request_json("GET", url, timeout_s=self.timeout_s)
        except _TRANSPORT_ERRORS as exc:
            logger.warning("ranking pull failed: %s", exc)
            return self.ranking
        if not 200 <= status < 300:
            logger.warning("ranking pull rejected: status=%s body=%r", status, payload)
            return self.ranking
        if not is_json_content_type(content_type) or not isinstance(payload, list):
            logger.warning("ranking pull returned non-json content (%s)", content_type or "none")
            return self.ranking
        records = records_from_json(payload)
        with self._lock:
            if self._closed:
                logger.info("discarding ranking pulled after close")
                return list(self._ranking)
            self._ranking = records
            self._ranking_loaded = True
            return list(records)

    def fetch_records(self) -> list[UserRecord] | None:
        try:
            status, content_type, payload = request_json(
                "GET", f"{self.base_url}/records", timeout_s=self.timeout_s
            )
        except _TRANSPORT_ERRORS as exc:
            logger.warning("records fetch failed: %s", exc)
            return None
        if not 200 <= status < 300 or not is_json_content_type(content_type):
            logger.warning("records fetch rejected: status=%s", status)
            return None
        if not isinstance(payload, list):
            return None
        return records_from_json(payload)


class RankingPoller:
    def __init__(
        self,
        client: SyncClient,
        interval_s: float,
        *,
        limit: int | None = None,
        on_update=None,
    ) -> None:
        self.client = client
        self.interval_s = interval_s
        self.limit = limit
        self.on_update = on_update
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def tick(self) -> list[UserRecord]:
        ranking = self.client.pull(self.limit)
        if self.on_update is not None and not self._stop.is_set():
            self.on_update(ranking)
        return ranking

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception as exc:
                logger.warning("ranking poll tick failed", exc_info=exc)
            if self._stop.wait(self.interval_s):
                return

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self, timeout_s: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout_s)
            self._thread = None
