from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .fs_paths import replace_text

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path.home() / ".snackcount" / "data" / "records.json"


@dataclass
class UserRecord:
    id: str
    name: str
    count: int
    last_updated: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "count": self.count,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Any) -> UserRecord:
        if not isinstance(data, dict):
            raise ValueError("record must be an object")
        record_id = data.get("id")
        name = data.get("name")
        count = data.get("count")
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("record id must be a non-empty string")
        if not isinstance(name, str):
            raise ValueError("record name must be a string")
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError("record count must be an integer")
        return cls(
            id=record_id,
            name=name,
            count=count,
            last_updated=str(data.get("lastUpdated") or ""),
        )


def records_from_json(payload: Any) -> list[UserRecord]:
    if not isinstance(payload, list):
        return []
    records: list[UserRecord] = []
    for item in payload:
        try:
            records.append(UserRecord.from_dict(item))
        except ValueError as exc:
            logger.warning("skipping malformed record %r: %s", item, exc)
    return records


def records_to_json(records: list[UserRecord]) -> list[dict[str, Any]]:
    return [record.to_dict() for record in records]


class RecordStore:
    """Flat JSON file holding every user's record.

    ``upsert`` is a read-modify-write of the whole file with no lock. Two
    processes upserting different ids at the same moment can each write a
    snapshot missing the other's change; the last rename wins.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or DEFAULT_DATA_FILE).expanduser()

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def read_all(self) -> list[UserRecord]:
        try:
            self._ensure_dir()
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("no records file at %s yet, starting empty", self.path)
            return []
        except OSError as exc:
            logger.warning("records file unreadable: %s", self.path, exc_info=exc)
            return []
        if not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("records file is not valid json: %s", self.path, exc_info=exc)
            return []
        return records_from_json(payload)

    def upsert(self, user_id: str, name: str, count: int) -> UserRecord:
        records = self.read_all()
        now = dt.datetime.now(dt.UTC).isoformat()
        for record in records:
            if record.id == user_id:
                record.name = name
                record.count = count
                record.last_updated = now
                current = record
                logger.info("updated record %s (%s) -> %d", user_id, name, count)
                break
        else:
            current = UserRecord(id=user_id, name=name, count=count, last_updated=now)
            records.append(current)
            logger.info("added record %s (%s) -> %d", user_id, name, count)
        self._write_all(records)
        return current

    def _write_all(self, records: list[UserRecord]) -> None:
        text = json.dumps(records_to_json(records), ensure_ascii=False, indent=2)
        try:
            replace_text(self.path, text + "\n")
        except OSError as exc:
            logger.error("failed to write records to %s: %s", self.path, exc)
            raise RuntimeError(f"could not save records: {exc}") from exc
