"""Data models for the mirroring service."""

from notion_mirror.models.config import (
    AppConfig,
    CursorAdvance,
    LocalStoreConfig,
    LoggingConfig,
    NotionConfig,
    ScheduleConfig,
    SyncConfig,
)
from notion_mirror.models.record import (
    BatchResult,
    ItemResult,
    RemoteRecord,
    SourceRecord,
    SyncCursor,
)

__all__ = [
    "AppConfig",
    "CursorAdvance",
    "LocalStoreConfig",
    "LoggingConfig",
    "NotionConfig",
    "ScheduleConfig",
    "SyncConfig",
    "BatchResult",
    "ItemResult",
    "RemoteRecord",
    "SourceRecord",
    "SyncCursor",
]
