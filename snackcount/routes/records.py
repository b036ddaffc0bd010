from __future__ import annotations

import logging
from typing import Any, Protocol

from ..records import RecordStore, records_to_json

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Request body is not valid JSON or is empty."
INVALID_FIELDS_MESSAGE = (
    "Invalid data: userId (string), userName (string) and count (number) are required."
)


class _ServerHandler(Protocol):
    def _send_json(self, payload: dict[str, Any] | list[Any], status: int = 200) -> None: ...

    def _read_json(self) -> dict[str, Any] | None: ...


def validate_payload(payload: dict[str, Any]) -> tuple[str, str, int]:
    user_id = payload.get("userId")
    user_name = payload.get("userName")
    count = payload.get("count")
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("userId")
    if not isinstance(user_name, str):
        raise ValueError("userName")
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError("count")
    return user_id, user_name, count


def handle_get(handler: _ServerHandler, store: RecordStore, path: str) -> bool:
    if path != "/records":
        return False
    try:
        records = store.read_all()
    except Exception as exc:
        logger.exception("records read failed")
        handler._send_json(
            {"message": "Internal error while reading records", "error": str(exc)},
            status=500,
        )
        return True
    handler._send_json(records_to_json(records))
    return True


def handle_post(handler: _ServerHandler, store: RecordStore, path: str) -> bool:
    if path != "/records":
        return False
    payload = handler._read_json()
    if payload is None:
        handler._send_json({"message": INVALID_BODY_MESSAGE}, status=400)
        return True
    try:
        user_id, user_name, count = validate_payload(payload)
    except ValueError as exc:
        logger.warning("rejected record payload (bad %s): %r", exc, payload)
        handler._send_json({"message": INVALID_FIELDS_MESSAGE}, status=400)
        return True
    try:
        store.upsert(user_id, user_name, count)
    except Exception as exc:
        logger.exception("record upsert failed for %s", user_id)
        handler._send_json(
            {"message": "Internal error while saving the record", "error": str(exc)},
            status=500,
        )
        return True
    handler._send_json(
        {
            "message": "Record synced",
            "userId": user_id,
            "userName": user_name,
            "count": count,
        }
    )
    return True
