"""Tests for the SQLite local store, cursor store and change selector."""

import asyncio
import sqlite3
import tempfile
from pathlib import Path

import pytest

from notion_mirror.models.config import LocalStoreConfig
from notion_mirror.storage.local_store import LocalStore, LocalStoreError
from notion_mirror.sync.change_selector import ChangeSelector
from notion_mirror.sync.cursor_store import CursorStore, CursorStoreError, utc_now_cursor
from notion_mirror.models.record import SyncCursor


def create_downloads(path: Path, rows: list[tuple]) -> None:
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE downloads (id INTEGER PRIMARY KEY, name TEXT, abstract TEXT, "
        "file_path TEXT, content TEXT)"
    )
    conn.executemany("INSERT INTO downloads VALUES (?, ?, ?, ?, ?)", rows)
    conn.commit()
    conn.close()


def test_connect_to_missing_database_is_fatal():
    with tempfile.TemporaryDirectory() as tmp_dir:
        store = LocalStore(LocalStoreConfig(database_path=str(Path(tmp_dir) / "missing.db")))

        with pytest.raises(LocalStoreError):
            asyncio.run(store.connect())


def test_query_before_connect_raises():
    store = LocalStore(LocalStoreConfig(database_path="unused.db"))

    with pytest.raises(LocalStoreError):
        asyncio.run(store.read_cursor_value())


def test_selects_rows_strictly_after_cursor_in_key_order():
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "downloads.db"
        create_downloads(
            db_path,
            [
                (3, "c", "sc", "/c", None),
                (1, "a", "sa", "/a", "body a"),
                (2, None, None, None, None),
                (5, "e", "se", "/e", None),
            ],
        )
        config = LocalStoreConfig(database_path=str(db_path))

        async def scenario():
            store = LocalStore(config)
            await store.connect()
            try:
                selector = ChangeSelector(store, config)
                return (
                    await selector.select_since(SyncCursor(value=1)),
                    await selector.select_since(SyncCursor(value=0, is_sentinel=True)),
                    await selector.select_since(SyncCursor(value=5)),
                )
            finally:
                await store.close()

        after_one, from_start, after_last = asyncio.run(scenario())

    assert [r.id for r in after_one] == [2, 3, 5]
    assert [r.id for r in from_start] == [1, 2, 3, 5]
    assert after_last == []

    blank = after_one[0]
    assert (blank.name, blank.summary, blank.locator, blank.body) == ("", "", "", None)
    assert from_start[0].body == "body a"
    assert from_start[0].cursor_value == 1


def test_datetime_comparison_orders_mixed_timestamp_formats():
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "events.db"
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE downloads (id INTEGER PRIMARY KEY, file_path TEXT, created_at TEXT)")
        conn.executemany(
            "INSERT INTO downloads VALUES (?, ?, ?)",
            [
                (1, "/a", "2024-06-01 13:59:59"),
                (2, "/b", "2024-06-01 14:00:01"),
                (3, "/c", "2024-06-01T14:30:00.000Z"),
            ],
        )
        conn.commit()
        conn.close()
        config = LocalStoreConfig(database_path=str(db_path), cursor_column="created_at")
        cursor = "2024-06-01T14:00:00.000Z"

        async def scenario():
            store = LocalStore(config)
            await store.connect()
            try:
                return (
                    await store.fetch_rows_after(cursor),
                    await store.fetch_rows_after(cursor, as_datetime=True),
                )
            finally:
                await store.close()

        as_text, as_datetime = asyncio.run(scenario())

    # Text comparison puts every space-separated timestamp before the T form
    assert [row["id"] for row in as_text] == [3]
    assert [row["id"] for row in as_datetime] == [2, 3]


def test_missing_source_table_raises_local_store_error():
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "empty.db"
        sqlite3.connect(db_path).close()
        config = LocalStoreConfig(database_path=str(db_path))

        async def scenario():
            store = LocalStore(config)
            await store.connect()
            try:
                await ChangeSelector(store, config).select_since(SyncCursor(value=0))
            finally:
                await store.close()

        with pytest.raises(LocalStoreError):
            asyncio.run(scenario())


def test_cursor_store_sentinel_then_upsert():
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "downloads.db"
        create_downloads(db_path, [])
        config = LocalStoreConfig(database_path=str(db_path), bootstrap_cursor="beginning")

        async def scenario():
            store = LocalStore(config)
            await store.connect()
            try:
                await store.ensure_cursor_table()
                await store.ensure_cursor_table()
                cursors = CursorStore(store, config.bootstrap_cursor)
                initial = await cursors.read()
                await cursors.write(SyncCursor(value="2024-01-01T00:00:00.000Z"))
                await cursors.write(SyncCursor(value="2024-02-01T00:00:00.000Z"))
                return initial, await cursors.read()
            finally:
                await store.close()

        initial, latest = asyncio.run(scenario())

        conn = sqlite3.connect(db_path)
        row_count = conn.execute("SELECT COUNT(*) FROM sync_status").fetchone()[0]
        conn.close()

    assert initial.is_sentinel
    assert initial.value == "beginning"
    assert latest == SyncCursor(value="2024-02-01T00:00:00.000Z")
    assert row_count == 1


def test_cursor_store_wraps_read_errors():
    with tempfile.TemporaryDirectory() as tmp_dir:
        db_path = Path(tmp_dir) / "downloads.db"
        create_downloads(db_path, [])
        config = LocalStoreConfig(database_path=str(db_path))

        async def scenario():
            store = LocalStore(config)
            await store.connect()
            try:
                # cursor table was never created
                await CursorStore(store, 0).read()
            finally:
                await store.close()

        with pytest.raises(CursorStoreError):
            asyncio.run(scenario())


def test_now_cursor_is_iso_utc_with_milliseconds():
    value = utc_now_cursor().value

    assert isinstance(value, str)
    assert value.endswith("Z")
    assert len(value) == len("2024-01-01T00:00:00.000Z")
