"""Batched, rate-limited delivery of pages to Notion."""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence

import structlog

from notion_mirror.models.record import BatchResult, ItemResult, RemoteRecord
from notion_mirror.remote.notion_client import NotionClient
from notion_mirror.remote.page_builder import MAX_CHILD_BLOCKS

log = structlog.stdlib.get_logger()


def partition(records: Sequence[RemoteRecord], batch_size: int) -> list[list[RemoteRecord]]:
    """Split records into consecutive chunks of at most ``batch_size`` items."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(records[i : i + batch_size]) for i in range(0, len(records), batch_size)]


class BatchDispatcher:
    """Creates pages batch by batch.

    Items inside a batch are created concurrently and the batch is awaited as
    a whole; batches run one after another separated by a fixed delay. An item
    failure is recorded in its ItemResult and never aborts the batch. Blocks
    past the per-request limit are appended to the new page in chunks.
    """

    def __init__(
        self,
        notion_client: NotionClient,
        database_id: str,
        item_timeout_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = notion_client
        self._database_id = database_id
        self._item_timeout_seconds = item_timeout_seconds
        self._sleep = sleep

    async def deliver(
        self,
        records: Sequence[RemoteRecord],
        batch_size: int,
        inter_batch_delay: float,
    ) -> list[BatchResult]:
        """
        Deliver records in order-preserving batches.

        Args:
            records: Pages to create
            batch_size: Maximum items per batch, which is also the concurrency cap
            inter_batch_delay: Seconds to wait between consecutive batches

        Returns:
            One BatchResult per batch, in dispatch order
        """
        batches = partition(records, batch_size)
        results: list[BatchResult] = []

        for index, batch in enumerate(batches):
            if not batch:
                continue

            started_at = datetime.now(timezone.utc)
            items = await asyncio.gather(*(self._deliver_one(record) for record in batch))
            result = BatchResult(
                batch_index=index,
                items=list(items),
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )
            results.append(result)

            log.info(
                "batch_dispatched",
                batch_index=index,
                batch_count=len(batches),
                size=len(batch),
                succeeded=result.succeeded,
                failed=result.failed,
            )

            if index < len(batches) - 1:
                await self._sleep(inter_batch_delay)

        return results

    async def _deliver_one(self, record: RemoteRecord) -> ItemResult:
        first_blocks = record.children[:MAX_CHILD_BLOCKS]
        try:
            page = await asyncio.wait_for(
                self._client.create_page(
                    self._database_id, record.properties, first_blocks
                ),
                timeout=self._item_timeout_seconds,
            )
        except Exception as e:
            log.error(
                "item_delivery_failed",
                source_id=record.source_id,
                locator=record.locator,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ItemResult(
                source_id=record.source_id,
                locator=record.locator,
                success=False,
                error=str(e) or type(e).__name__,
            )

        remote_id = page.get("id")
        remaining = record.children[MAX_CHILD_BLOCKS:]
        try:
            for start in range(0, len(remaining), MAX_CHILD_BLOCKS):
                await asyncio.wait_for(
                    self._client.append_block_children(
                        remote_id, remaining[start : start + MAX_CHILD_BLOCKS]
                    ),
                    timeout=self._item_timeout_seconds,
                )
        except Exception as e:
            log.error(
                "item_content_incomplete",
                source_id=record.source_id,
                locator=record.locator,
                remote_id=remote_id,
                blocks_total=len(record.children),
                blocks_written=MAX_CHILD_BLOCKS + start,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ItemResult(
                source_id=record.source_id,
                locator=record.locator,
                success=False,
                remote_id=remote_id,
                error=f"Page {remote_id} created but appending content failed: "
                f"{str(e) or type(e).__name__}",
            )

        log.debug(
            "item_delivered",
            source_id=record.source_id,
            remote_id=remote_id,
            blocks=len(record.children),
        )
        return ItemResult(
            source_id=record.source_id,
            locator=record.locator,
            success=True,
            remote_id=remote_id,
        )
