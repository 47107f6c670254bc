"""Centralized provider module for the service's collaborators.

This module builds the local store, the Notion client and the orchestrator
from configuration. Each collaborator is constructed explicitly and passed
down, so tests can substitute any of them.
"""

import structlog

from notion_mirror.models.config import AppConfig, CursorAdvance, LocalStoreConfig, NotionConfig
from notion_mirror.remote.notion_client import NotionClient
from notion_mirror.storage.local_store import LocalStore
from notion_mirror.sync.batch_dispatcher import BatchDispatcher
from notion_mirror.sync.change_selector import ChangeSelector
from notion_mirror.sync.cursor_store import CursorStore
from notion_mirror.sync.existence_oracle import ExistenceOracle
from notion_mirror.sync.sync_orchestrator import SyncOrchestrator

log = structlog.stdlib.get_logger()


def get_local_store(config: LocalStoreConfig) -> LocalStore:
    """Get the local store implementation (SQLite).

    The returned store is not connected yet; call ``connect()`` before use.
    """
    log.info("initializing_local_store", database_path=config.database_path, provider="sqlite")
    return LocalStore(config)


def get_notion_client(config: NotionConfig) -> NotionClient:
    """Get the remote client implementation (Notion over httpx)."""
    if not config.database_id.strip():
        error_msg = "notion.database_id cannot be empty"
        log.error("get_notion_client_failed", error=error_msg)
        raise ValueError(error_msg)

    return NotionClient(config)


def get_orchestrator(
    config: AppConfig,
    local_store: LocalStore,
    notion_client: NotionClient,
) -> SyncOrchestrator:
    """Wire the sync components around an existing store and client.

    Args:
        config: Application configuration
        local_store: Connected local store
        notion_client: Notion client owned by the caller

    Returns:
        Ready-to-run SyncOrchestrator
    """
    notion = config.notion
    sync = config.sync

    return SyncOrchestrator(
        cursor_store=CursorStore(local_store, config.local_store.bootstrap_cursor),
        change_selector=ChangeSelector(
            local_store,
            config.local_store,
            compare_as_datetime=sync.cursor_advance == CursorAdvance.NOW,
        ),
        existence_oracle=ExistenceOracle(
            notion_client,
            database_id=notion.database_id,
            locator_property=notion.locator_property,
            fail_open=sync.existence_check_fail_open,
            timeout_seconds=sync.item_timeout_seconds,
        ),
        dispatcher=BatchDispatcher(
            notion_client,
            database_id=notion.database_id,
            item_timeout_seconds=sync.item_timeout_seconds,
        ),
        notion_config=notion,
        sync_config=sync,
    )
