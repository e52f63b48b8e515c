"""Persistence backends for the token store."""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from fetchit.token_cipher import TokenCipherService


class TokenStorage(Protocol):
    """Durable home of the single serialized credential."""

    def load(self) -> Optional[Dict[str, Any]]: ...

    def save(self, record: Dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class InMemoryTokenStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self, record: Optional[Dict[str, Any]] = None) -> None:
        self._record = dict(record) if record is not None else None

    def load(self) -> Optional[Dict[str, Any]]:
        return dict(self._record) if self._record is not None else None

    def save(self, record: Dict[str, Any]) -> None:
        self._record = dict(record)

    def clear(self) -> None:
        self._record = None


class SQLiteTokenStorage:
    """Encrypted credential record in a SQLite key-value table keyed by (pk, sk)."""

    PARTITION_KEY = "device"
    SORT_KEY = "oauth#gmail"

    def __init__(self, db_path: str, cipher: TokenCipherService) -> None:
        self._db_path = Path(db_path)
        self._cipher = cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    pk TEXT NOT NULL,
                    sk TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (pk, sk)
                )
                """
            )

    def load(self) -> Optional[Dict[str, Any]]:
        with closing(self._connect()) as conn, conn:
            row = conn.execute(
                "SELECT data FROM kv_records WHERE pk = ? AND sk = ?",
                (self.PARTITION_KEY, self.SORT_KEY),
            ).fetchone()
        if not row:
            return None
        return json.loads(self._cipher.decrypt(row["data"]))

    def save(self, record: Dict[str, Any]) -> None:
        data = self._cipher.encrypt(json.dumps(record))
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO kv_records (pk, sk, data)
                VALUES (?, ?, ?)
                ON CONFLICT(pk, sk) DO UPDATE SET data = excluded.data
                """,
                (self.PARTITION_KEY, self.SORT_KEY, data),
            )

    def clear(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "DELETE FROM kv_records WHERE pk = ? AND sk = ?",
                (self.PARTITION_KEY, self.SORT_KEY),
            )


__all__ = ["InMemoryTokenStorage", "SQLiteTokenStorage", "TokenStorage"]
