"""Selection of local rows that are newer than the cursor."""

from typing import Any

import structlog
from pydantic import ValidationError

from notion_mirror.models.config import LocalStoreConfig
from notion_mirror.models.record import SourceRecord, SyncCursor
from notion_mirror.storage.local_store import LocalStore, LocalStoreError

log = structlog.stdlib.get_logger()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class ChangeSelector:
    """Builds the change set for a pass from the local store.

    With ``compare_as_datetime`` set, a persisted cursor is compared against
    the cursor column as a point in time rather than as raw text, so that
    ``2024-06-01 15:00:00`` is newer than ``2024-06-01T14:00:00.000Z``. The
    bootstrap sentinel is always compared as a raw value.
    """

    def __init__(
        self,
        local_store: LocalStore,
        config: LocalStoreConfig,
        compare_as_datetime: bool = False,
    ):
        self._local_store = local_store
        self._config = config
        self._compare_as_datetime = compare_as_datetime

    async def select_since(self, cursor: SyncCursor) -> list[SourceRecord]:
        """
        Select records whose cursor column is strictly greater than the cursor.

        The store's ordering is kept as-is.

        Raises:
            LocalStoreError: If the selection query fails or a row cannot be
                turned into a record
        """
        as_datetime = self._compare_as_datetime and not cursor.is_sentinel
        rows = await self._local_store.fetch_rows_after(cursor.value, as_datetime=as_datetime)
        records = [self.to_source_record(row) for row in rows]

        log.info(
            "change_set_selected",
            cursor=cursor.value,
            sentinel=cursor.is_sentinel,
            as_datetime=as_datetime,
            record_count=len(records),
        )
        return records

    def to_source_record(self, row: dict[str, Any]) -> SourceRecord:
        """
        Snapshot one row; missing text columns become empty strings.

        Raises:
            LocalStoreError: If the id column is missing or the id/cursor
                values have an unsupported type
        """
        config = self._config
        if config.id_column not in row:
            raise LocalStoreError(
                f"Column {config.id_column!r} not found in table {config.source_table!r}"
            )

        body = row.get(config.body_column) if config.body_column else None
        try:
            return SourceRecord(
                id=row[config.id_column],
                name=_text(row.get(config.name_column)),
                summary=_text(row.get(config.summary_column)),
                locator=_text(row.get(config.locator_column)),
                body=None if body is None else str(body),
                cursor_value=row.get(config.cursor_column),
            )
        except ValidationError as e:
            log.error(
                "source_row_rejected",
                source_id=row.get(config.id_column),
                error_count=e.error_count(),
            )
            raise LocalStoreError(
                f"Row {row.get(config.id_column)!r} in {config.source_table!r} "
                f"cannot be mirrored: {e}"
            ) from e
