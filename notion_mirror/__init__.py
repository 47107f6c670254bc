"""Incremental SQLite to Notion mirroring service."""

__version__ = "0.1.0"
