"""Process bootstrap for the mirroring service."""

import asyncio
import signal

import structlog

from notion_mirror.models.config import AppConfig
from notion_mirror.providers import get_local_store, get_notion_client, get_orchestrator
from notion_mirror.scheduler import SyncScheduler
from notion_mirror.sync.models import SyncReport

log = structlog.stdlib.get_logger()


async def run_once(config: AppConfig) -> SyncReport:
    """
    Connect, perform a single pass and release all resources.

    Raises:
        LocalStoreError: If the local store cannot be opened
    """
    local_store = get_local_store(config.local_store)
    await local_store.connect()
    try:
        await local_store.ensure_cursor_table()
        async with get_notion_client(config.notion) as notion_client:
            orchestrator = get_orchestrator(config, local_store, notion_client)
            return await orchestrator.run_pass()
    finally:
        await local_store.close()


async def run_service(config: AppConfig, stop_event: asyncio.Event | None = None) -> None:
    """
    Run passes on the configured schedule until SIGINT/SIGTERM or ``stop_event``.

    Raises:
        LocalStoreError: If the local store cannot be opened at startup
    """
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    local_store = get_local_store(config.local_store)
    await local_store.connect()
    scheduler: SyncScheduler | None = None
    try:
        await local_store.ensure_cursor_table()
        async with get_notion_client(config.notion) as notion_client:
            orchestrator = get_orchestrator(config, local_store, notion_client)
            scheduler = SyncScheduler(orchestrator, config.schedule)
            scheduler.start()
            log.info("service_started")

            await stop_event.wait()
            log.info("service_stopping")
            scheduler.shutdown()

            # Let an in-flight pass finish before the client closes
            while orchestrator.running:
                await asyncio.sleep(0.1)
    finally:
        if scheduler is not None:
            scheduler.shutdown()
        await local_store.close()
        log.info("service_stopped")
