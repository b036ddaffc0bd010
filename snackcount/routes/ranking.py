from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import parse_qs

from ..ranking import parse_limit, rank
from ..records import RecordStore, records_to_json

logger = logging.getLogger(__name__)


class _ServerHandler(Protocol):
    def _send_json(self, payload: dict[str, Any] | list[Any], status: int = 200) -> None: ...


def handle_get(handler: _ServerHandler, store: RecordStore, path: str, query: str) -> bool:
    if path != "/ranking":
        return False
    try:
        params = parse_qs(query)
        limit = parse_limit(params.get("limit", [None])[0])
        ranked = rank(store.read_all(), limit)
    except Exception as exc:
        logger.exception("ranking read failed")
        handler._send_json(
            {"message": "Internal error while building the ranking", "error": str(exc)},
            status=500,
        )
        return True
    handler._send_json(records_to_json(ranked))
    return True
