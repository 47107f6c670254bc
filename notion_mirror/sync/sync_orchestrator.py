"""Synchronization orchestrator composing one incremental pass."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Callable

import structlog

from notion_mirror.models.config import CursorAdvance, NotionConfig, SyncConfig
from notion_mirror.models.record import BatchResult, SourceRecord, SyncCursor
from notion_mirror.remote.page_builder import to_remote_record
from notion_mirror.sync.batch_dispatcher import BatchDispatcher
from notion_mirror.sync.change_selector import ChangeSelector
from notion_mirror.sync.cursor_store import CursorStore, CursorStoreError, utc_now_cursor
from notion_mirror.sync.existence_oracle import ExistenceCheck, ExistenceOracle
from notion_mirror.sync.models import PassState, SyncReport

log = structlog.stdlib.get_logger()


class SyncOrchestrator:
    """Runs passes of read cursor, select, filter duplicates, dispatch, advance cursor.

    ``run_pass`` is the single entry point used both at startup and by the
    scheduler. It is not re-entrant: a call that arrives while another pass
    is running returns immediately with a SKIPPED report.
    """

    def __init__(
        self,
        cursor_store: CursorStore,
        change_selector: ChangeSelector,
        existence_oracle: ExistenceOracle,
        dispatcher: BatchDispatcher,
        notion_config: NotionConfig,
        sync_config: SyncConfig,
        clock: Callable[[], SyncCursor] = utc_now_cursor,
    ):
        """
        Initialize sync orchestrator.

        Args:
            cursor_store: Persistence for the cursor
            change_selector: Source of the change set
            existence_oracle: Remote duplicate check
            dispatcher: Batched page creation
            notion_config: Property names used to build pages
            sync_config: Batch size, delay and cursor policy
            clock: Produces the "now" cursor for CursorAdvance.NOW
        """
        self._cursor_store = cursor_store
        self._change_selector = change_selector
        self._existence_oracle = existence_oracle
        self._dispatcher = dispatcher
        self._notion_config = notion_config
        self._sync_config = sync_config
        self._clock = clock
        self._lock = asyncio.Lock()
        self._state = PassState.IDLE

        log.info(
            "sync_orchestrator_initialized",
            batch_size=sync_config.batch_size,
            inter_batch_delay_seconds=sync_config.inter_batch_delay_seconds,
            cursor_advance=sync_config.cursor_advance.value,
            hold_back_failed_items=sync_config.hold_back_failed_items,
        )

    @property
    def state(self) -> PassState:
        return self._state

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_pass(self) -> SyncReport:
        """
        Perform one synchronization pass.

        Returns:
            SyncReport describing the outcome. Cursor and selection failures
            end the pass in ABORTED with the cursor untouched; per-item
            failures are listed in ``errors``.
        """
        pass_id = uuid.uuid4().hex[:12]
        start_time = datetime.now(timezone.utc)

        if self._lock.locked():
            log.warning("sync_pass_skipped_already_running", pass_id=pass_id)
            return self._finish(
                SyncReport(pass_id=pass_id, start_time=start_time), PassState.SKIPPED
            )

        async with self._lock:
            with structlog.contextvars.bound_contextvars(pass_id=pass_id):
                log.info("sync_pass_started", start_time=start_time)
                report = SyncReport(pass_id=pass_id, start_time=start_time)
                try:
                    return await self._run(report)
                finally:
                    self._state = PassState.IDLE

    async def _run(self, report: SyncReport) -> SyncReport:
        self._state = PassState.READING_CURSOR
        try:
            cursor = await self._cursor_store.read()
        except Exception as e:
            return self._abort(report, f"Failed to read cursor: {e}")

        report.cursor_before = cursor.value
        log.info("cursor_loaded", cursor=cursor.value, sentinel=cursor.is_sentinel)

        self._state = PassState.SELECTING
        try:
            candidates = await self._change_selector.select_since(cursor)
        except Exception as e:
            return self._abort(report, f"Failed to select changes: {e}")

        report.records_selected = len(candidates)
        if not candidates:
            log.info("no_new_data", cursor=cursor.value)
            return self._finish(report, PassState.IDLE)

        self._state = PassState.FILTERING
        to_deliver, unverified_ids = await self._filter_duplicates(candidates)
        report.records_unverified = len(unverified_ids)
        report.duplicates_skipped = len(candidates) - len(to_deliver) - len(unverified_ids)
        for record in candidates:
            if record.id in unverified_ids:
                report.errors.append(
                    f"Existence check failed for record {record.id} ({record.locator}); not delivered"
                )

        self._state = PassState.DISPATCHING
        log.info(
            "dispatching_records",
            record_count=len(to_deliver),
            duplicates_skipped=report.duplicates_skipped,
        )
        batches = await self._dispatcher.deliver(
            [to_remote_record(record, self._notion_config) for record in to_deliver],
            self._sync_config.batch_size,
            self._sync_config.inter_batch_delay_seconds,
        )
        self._record_batches(report, batches)

        self._state = PassState.ADVANCING_CURSOR
        new_cursor = self._next_cursor(cursor, candidates, batches, unverified_ids)
        if new_cursor is None:
            log.warning(
                "cursor_held_back",
                cursor=cursor.value,
                records_failed=report.records_failed,
                records_unverified=report.records_unverified,
            )
        else:
            try:
                await self._cursor_store.write(new_cursor)
            except CursorStoreError as e:
                return self._abort(report, f"Failed to advance cursor: {e}")
            report.cursor_after = new_cursor.value

        return self._finish(report, PassState.IDLE)

    async def _filter_duplicates(
        self, candidates: list[SourceRecord]
    ) -> tuple[list[SourceRecord], set[int | float | str]]:
        """Drop candidates whose locator already exists remotely or earlier in this pass.

        Returns the records to deliver and the ids held back because their
        existence check failed while failing closed.
        """
        kept: list[SourceRecord] = []
        unverified_ids: set[int | float | str] = set()
        seen_locators: set[str] = set()

        for record in candidates:
            if not record.locator:
                # Nothing to deduplicate on
                kept.append(record)
                continue

            if record.locator in seen_locators:
                log.info("duplicate_in_change_set", source_id=record.id, locator=record.locator)
                continue
            seen_locators.add(record.locator)

            result = await self._existence_oracle.check(record.locator)
            if result == ExistenceCheck.EXISTS:
                log.info("duplicate_skipped", source_id=record.id, locator=record.locator)
                continue
            if result == ExistenceCheck.UNKNOWN and not self._existence_oracle.fail_open:
                log.warning("record_unverified_skipped", source_id=record.id, locator=record.locator)
                unverified_ids.add(record.id)
                continue

            kept.append(record)

        return kept, unverified_ids

    def _next_cursor(
        self,
        current: SyncCursor,
        candidates: list[SourceRecord],
        batches: list[BatchResult],
        unverified_ids: set[int | float | str],
    ) -> SyncCursor | None:
        """Compute the cursor to persist, or None to leave it unchanged.

        Records that were not delivered, either because the create failed or
        because their existence could not be checked, count as failed.
        """
        failed_ids = {item.source_id for batch in batches for item in batch.items if not item.success}
        failed_ids |= unverified_ids
        hold_back = self._sync_config.hold_back_failed_items and bool(failed_ids)

        if self._sync_config.cursor_advance == CursorAdvance.NOW:
            if hold_back:
                return None
            proposed = self._clock()
        else:
            accounted = candidates
            if hold_back:
                accounted = []
                for record in candidates:
                    if record.id in failed_ids:
                        break
                    accounted.append(record)
            keys = [r.cursor_value for r in accounted if r.cursor_value is not None]
            if not keys:
                return None
            proposed = SyncCursor(value=keys[-1])

        # Never move backwards
        if proposed.is_behind(current) or proposed.value == current.value:
            return None
        return proposed

    @staticmethod
    def _record_batches(report: SyncReport, batches: list[BatchResult]) -> None:
        report.batches = batches
        for batch in batches:
            report.records_delivered += batch.succeeded
            report.records_failed += batch.failed
            for item in batch.items:
                if not item.success:
                    report.errors.append(
                        f"Failed to deliver record {item.source_id} ({item.locator}): {item.error}"
                    )

    def _abort(self, report: SyncReport, error: str) -> SyncReport:
        report.errors.append(error)
        log.error("sync_pass_aborted", state=self._state.value, error=error)
        return self._finish(report, PassState.ABORTED)

    @staticmethod
    def _finish(report: SyncReport, state: PassState) -> SyncReport:
        report.state = state
        report.end_time = datetime.now(timezone.utc)
        report.duration_seconds = (report.end_time - report.start_time).total_seconds()

        if state == PassState.IDLE:
            log.info(
                "sync_pass_completed",
                cursor_before=report.cursor_before,
                cursor_after=report.cursor_after,
                records_selected=report.records_selected,
                duplicates_skipped=report.duplicates_skipped,
                records_unverified=report.records_unverified,
                records_delivered=report.records_delivered,
                records_failed=report.records_failed,
                batches=len(report.batches),
                completed_at=report.end_time.isoformat(),
                duration_seconds=report.duration_seconds,
            )
        return report
