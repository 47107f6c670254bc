"""Notion API access."""

from notion_mirror.remote.notion_client import (
    NotionApiError,
    NotionClient,
    NotionRateLimitError,
)
from notion_mirror.remote.page_builder import to_remote_record

__all__ = [
    "NotionApiError",
    "NotionClient",
    "NotionRateLimitError",
    "to_remote_record",
]
