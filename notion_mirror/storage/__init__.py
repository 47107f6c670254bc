"""Local relational store access."""

from notion_mirror.storage.local_store import LocalStore, LocalStoreError

__all__ = ["LocalStore", "LocalStoreError"]
