"""SQLite-backed binding store."""

import asyncio
import contextlib
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

from tasktracker.domain.models import Binding

logger = logging.getLogger(__name__)


class SqliteBindingStore:
    """Durable binding store, also able to persist the update cursor.

    Each call opens its own connection and runs in a worker thread, so the
    store can be shared between the poll loop and request handlers.
    """

    def __init__(self, db_path: Union[str, Path] = "bindings.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info(f"SqliteBindingStore ready db={self._db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        with contextlib.closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bindings (
                    username TEXT PRIMARY KEY,
                    chat_id TEXT NOT NULL,
                    bound_at REAL NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS update_cursor (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    value INTEGER NOT NULL
                )
                """
            )

    @staticmethod
    def _row_to_binding(row: sqlite3.Row) -> Binding:
        return Binding(
            username=row["username"],
            chat_id=row["chat_id"],
            bound_at=datetime.fromtimestamp(row["bound_at"], tz=timezone.utc),
        )

    def _get(self, username: str) -> Optional[Binding]:
        with contextlib.closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT username, chat_id, bound_at FROM bindings WHERE username = ?",
                (username,),
            ).fetchone()
        return self._row_to_binding(row) if row else None

    def _bind(self, username: str, chat_id: str) -> Binding:
        binding = Binding(
            username=username,
            chat_id=chat_id,
            bound_at=datetime.now(timezone.utc),
        )
        with contextlib.closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO bindings (username, chat_id, bound_at) VALUES (?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET
                    chat_id = excluded.chat_id,
                    bound_at = excluded.bound_at
                """,
                (username, chat_id, binding.bound_at.timestamp()),
            )
        return binding

    def _list(self) -> list[Binding]:
        with contextlib.closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT username, chat_id, bound_at FROM bindings ORDER BY username"
            ).fetchall()
        return [self._row_to_binding(r) for r in rows]

    def _load_cursor(self) -> Optional[int]:
        with contextlib.closing(self._connect()) as conn:
            row = conn.execute("SELECT value FROM update_cursor WHERE id = 1").fetchone()
        return int(row["value"]) if row else None

    def _store_cursor(self, value: int) -> None:
        # MAX() keeps the stored cursor monotonic even if writers race.
        with contextlib.closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO update_cursor (id, value) VALUES (1, ?)
                ON CONFLICT(id) DO UPDATE SET value = MAX(value, excluded.value)
                """,
                (value,),
            )

    async def get(self, username: str) -> Optional[Binding]:
        return await asyncio.to_thread(self._get, username)

    async def bind(self, username: str, chat_id: str) -> Binding:
        return await asyncio.to_thread(self._bind, username, chat_id)

    async def list_bindings(self) -> Sequence[Binding]:
        return await asyncio.to_thread(self._list)

    async def load_cursor(self) -> Optional[int]:
        return await asyncio.to_thread(self._load_cursor)

    async def store_cursor(self, value: int) -> None:
        await asyncio.to_thread(self._store_cursor, value)
