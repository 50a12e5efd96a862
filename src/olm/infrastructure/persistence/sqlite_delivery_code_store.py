"""SQLite-backed DeliveryCodeStore.

Expiry is a column; expired rows read as missing and are purged on
every write.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from olm.domain.repository.delivery_code_store import DeliveryCode, DeliveryCodeStore

_SCHEMA = """
CREATE TABLE IF NOT EXISTS delivery_codes (
    order_id   TEXT PRIMARY KEY,
    code       TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    attempts   INTEGER NOT NULL DEFAULT 0
);
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqliteDeliveryCodeStore(DeliveryCodeStore):

    def __init__(
        self,
        db_path: Path,
        clock: Callable[[], datetime] = _utcnow,
        timeout: float = 10.0,
    ) -> None:
        self._db_path = db_path
        self._clock = clock
        self._timeout = timeout
        self._ensure_schema()

    def save(self, order_id: str, code: DeliveryCode) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "DELETE FROM delivery_codes WHERE expires_at <= ?",
                (self._clock().isoformat(),),
            )
            conn.execute(
                "INSERT OR REPLACE INTO delivery_codes (order_id, code, expires_at, attempts) "
                "VALUES (?, ?, ?, ?)",
                (order_id, code.code, code.expires_at.isoformat(), code.attempts),
            )

    def get(self, order_id: str) -> DeliveryCode | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT code, expires_at, attempts FROM delivery_codes "
                "WHERE order_id = ? AND expires_at > ?",
                (order_id, self._clock().isoformat()),
            ).fetchone()
        if row is None:
            return None
        return DeliveryCode(
            code=row[0], expires_at=datetime.fromisoformat(row[1]), attempts=row[2]
        )

    def record_failure(self, order_id: str) -> int:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "UPDATE delivery_codes SET attempts = attempts + 1 WHERE order_id = ?",
                (order_id,),
            )
            row = conn.execute(
                "SELECT attempts FROM delivery_codes WHERE order_id = ?", (order_id,)
            ).fetchone()
        return row[0] if row else 0

    def delete(self, order_id: str) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM delivery_codes WHERE order_id = ?", (order_id,))

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path, timeout=self._timeout)

    def _ensure_schema(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.executescript(_SCHEMA)
