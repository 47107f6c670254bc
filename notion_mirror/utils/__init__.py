"""Shared utilities for configuration, logging, and error handling"""

from notion_mirror.utils.retry import async_exponential_backoff_retry

__all__ = ["async_exponential_backoff_retry"]
