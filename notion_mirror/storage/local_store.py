"""SQLite access for source rows and the persisted cursor.

Every query runs on a worker thread through ``asyncio.to_thread`` so callers
simply await one task per query. The connection is opened with
``check_same_thread=False`` and all statements are serialized by a lock.
"""

import asyncio
import sqlite3
import threading
from pathlib import Path
from typing import Any

import structlog

from notion_mirror.models.config import LocalStoreConfig

log = structlog.stdlib.get_logger()


class LocalStoreError(RuntimeError):
    """Raised when the local store cannot be reached or queried."""


class LocalStore:
    """Read source rows and read/upsert the single cursor row."""

    def __init__(self, config: LocalStoreConfig):
        self._config = config
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def config(self) -> LocalStoreConfig:
        return self._config

    async def connect(self) -> None:
        """
        Open the SQLite database.

        Raises:
            LocalStoreError: If the database cannot be opened
        """
        if self._conn is not None:
            return

        def _open() -> sqlite3.Connection:
            # mode=rw refuses to create a missing file
            uri = f"{Path(self._config.database_path).resolve().as_uri()}?mode=rw"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            return conn

        try:
            self._conn = await asyncio.to_thread(_open)
        except sqlite3.Error as e:
            log.error(
                "local_store_connection_failed",
                database_path=self._config.database_path,
                error=str(e),
            )
            raise LocalStoreError(
                f"Failed to open SQLite database {self._config.database_path}: {e}"
            ) from e

        log.info("local_store_connected", database_path=self._config.database_path)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await asyncio.to_thread(conn.close)
        log.info("local_store_closed")

    async def ensure_cursor_table(self) -> None:
        """Create the cursor table if it does not exist yet."""
        sql = (
            f"CREATE TABLE IF NOT EXISTS {self._config.cursor_table} "
            f"(id INTEGER PRIMARY KEY, last_sync)"
        )

        def _create(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(sql)

        await self._run(_create)

    async def fetch_rows_after(
        self, value: int | float | str, as_datetime: bool = False
    ) -> list[dict[str, Any]]:
        """
        Select rows whose cursor column is strictly greater than ``value``.

        Args:
            value: Current cursor value (or the bootstrap sentinel)
            as_datetime: Compare both sides through ``julianday()`` so that
                ISO-8601 and SQLite ``CURRENT_TIMESTAMP`` text order as times.
                Rows whose column is not a recognizable time are not selected.

        Returns:
            Rows as dictionaries, in cursor column order
        """
        column = self._config.cursor_column
        condition = (
            f"julianday({column}) > julianday(?)" if as_datetime else f"{column} > ?"
        )
        sql = (
            f"SELECT * FROM {self._config.source_table} "
            f"WHERE {condition} ORDER BY {column}"
        )

        def _query(conn: sqlite3.Connection) -> list[dict[str, Any]]:
            return [dict(row) for row in conn.execute(sql, (value,)).fetchall()]

        return await self._run(_query)

    async def read_cursor_value(self) -> int | float | str | None:
        """Return the persisted cursor value, or None if never written."""
        sql = f"SELECT last_sync FROM {self._config.cursor_table} WHERE id = ?"

        def _query(conn: sqlite3.Connection) -> Any:
            row = conn.execute(sql, (self._config.cursor_key,)).fetchone()
            return row["last_sync"] if row else None

        return await self._run(_query)

    async def upsert_cursor_value(self, value: int | float | str) -> None:
        """Insert or replace the cursor value in a single transaction."""
        sql = (
            f"INSERT INTO {self._config.cursor_table} (id, last_sync) VALUES (?, ?) "
            f"ON CONFLICT(id) DO UPDATE SET last_sync = excluded.last_sync"
        )

        def _upsert(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(sql, (self._config.cursor_key, value))

        await self._run(_upsert)

    async def _run(self, operation: Any) -> Any:
        if self._conn is None:
            raise LocalStoreError("LocalStore is not connected; call connect() first")

        conn = self._conn

        def _locked() -> Any:
            with self._lock:
                return operation(conn)

        try:
            return await asyncio.to_thread(_locked)
        except sqlite3.Error as e:
            raise LocalStoreError(f"SQLite operation failed: {e}") from e
