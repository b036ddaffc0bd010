from __future__ import annotations

import datetime as dt
import logging
import sqlite3
import threading
from pathlib import Path

from . import db

logger = logging.getLogger(__name__)


class LocalCounterCache:
    """Per-user counter persisted in a local SQLite file.

    The cache owns its connection. It is opened on first use, and reopened when
    another process has changed the schema version underneath it. Storage
    failures never reach the caller: reads fall back to 0 and writes are
    logged and dropped.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path or db.DEFAULT_DB_PATH).expanduser()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            if db.schema_version(self._conn) == db.SCHEMA_VERSION:
                return self._conn
            logger.info("counter cache schema changed on disk, reopening %s", self.db_path)
            self._close_locked()
        conn = db.connect(self.db_path, check_same_thread=False)
        try:
            db.initialize_schema(conn)
        except Exception:
            conn.close()
            raise
        self._conn = conn
        return conn

    def read_count(self, user_id: str) -> int:
        if not user_id:
            return 0
        try:
            with self._lock:
                row = (
                    self._connection()
                    .execute("SELECT count FROM counters WHERE id = ?", (user_id,))
                    .fetchone()
                )
        except (sqlite3.Error, OSError, RuntimeError) as exc:
            logger.warning("counter cache read failed for %s", user_id, exc_info=exc)
            return 0
        return int(row["count"]) if row else 0

    def write_count(self, user_id: str, count: int) -> None:
        if not user_id:
            return
        now = dt.datetime.now(dt.UTC).isoformat()
        try:
            with self._lock:
                conn = self._connection()
                conn.execute(
                    """
                    INSERT INTO counters(id, count, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        count = excluded.count,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, int(count), now),
                )
                conn.commit()
        except (sqlite3.Error, OSError, RuntimeError) as exc:
            logger.warning("counter cache write failed for %s", user_id, exc_info=exc)

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        finally:
            self._conn = None
