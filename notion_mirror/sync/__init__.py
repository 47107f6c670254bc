"""Synchronization components for incremental mirroring."""

from notion_mirror.sync.batch_dispatcher import BatchDispatcher, partition
from notion_mirror.sync.change_selector import ChangeSelector
from notion_mirror.sync.cursor_store import CursorStore, CursorStoreError
from notion_mirror.sync.existence_oracle import ExistenceCheck, ExistenceOracle
from notion_mirror.sync.models import PassState, SyncReport
from notion_mirror.sync.sync_orchestrator import SyncOrchestrator

__all__ = [
    "BatchDispatcher",
    "ChangeSelector",
    "CursorStore",
    "CursorStoreError",
    "ExistenceCheck",
    "ExistenceOracle",
    "PassState",
    "SyncOrchestrator",
    "SyncReport",
    "partition",
]
