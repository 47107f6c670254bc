"""Persistence of the synchronization cursor."""

from datetime import datetime, timezone

import structlog

from notion_mirror.models.record import SyncCursor
from notion_mirror.storage.local_store import LocalStore, LocalStoreError

log = structlog.stdlib.get_logger()


class CursorStoreError(RuntimeError):
    """Raised when the cursor cannot be read or written."""


def utc_now_cursor() -> SyncCursor:
    """Cursor for the current instant, as an ISO-8601 UTC string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return SyncCursor(value=now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z")


class CursorStore:
    """Reads and atomically upserts the single cursor row in the local store."""

    def __init__(self, local_store: LocalStore, bootstrap_value: int | float | str):
        """
        Initialize cursor store.

        Args:
            local_store: Connected local store holding the cursor table
            bootstrap_value: Sentinel returned before the first successful pass
        """
        self._local_store = local_store
        self._bootstrap_value = bootstrap_value

    async def read(self) -> SyncCursor:
        """
        Read the persisted cursor.

        Returns:
            The stored cursor, or the sentinel if no pass has completed

        Raises:
            CursorStoreError: If the cursor cannot be read
        """
        try:
            value = await self._local_store.read_cursor_value()
        except LocalStoreError as e:
            log.error("cursor_read_failed", error=str(e))
            raise CursorStoreError(f"Failed to read sync cursor: {e}") from e

        if value is None:
            log.info("cursor_not_found_using_sentinel", sentinel=self._bootstrap_value)
            return SyncCursor(value=self._bootstrap_value, is_sentinel=True)

        return SyncCursor(value=value)

    async def write(self, cursor: SyncCursor) -> None:
        """
        Persist a new cursor value.

        Raises:
            CursorStoreError: If the cursor cannot be written
        """
        try:
            await self._local_store.upsert_cursor_value(cursor.value)
        except LocalStoreError as e:
            log.error("cursor_write_failed", cursor=cursor.value, error=str(e))
            raise CursorStoreError(f"Failed to write sync cursor: {e}") from e

        log.info("cursor_written", cursor=cursor.value)
