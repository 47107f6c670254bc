#!/usr/bin/env python3
"""
Scheduled synchronization script for the SQLite to Notion mirror.

Usage:
    python scripts/scheduled_sync.py [--config CONFIG_PATH] [--once]
"""

from notion_mirror.cli import main

if __name__ == "__main__":
    main()
