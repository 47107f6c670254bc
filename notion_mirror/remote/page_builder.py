"""Mapping from source rows to Notion page payloads."""

from typing import Any

import structlog

from notion_mirror.models.config import NotionConfig
from notion_mirror.models.record import RemoteRecord, SourceRecord

log = structlog.stdlib.get_logger()

# Notion limits
MAX_TEXT_LENGTH = 2000
MAX_RICH_TEXT_ITEMS = 100
MAX_CHILD_BLOCKS = 100
MAX_RICH_TEXT_CHARS = MAX_TEXT_LENGTH * MAX_RICH_TEXT_ITEMS


def _text_segments(content: str) -> list[dict[str, Any]]:
    """Split text into rich text items; anything past the item limit is cut."""
    if not content:
        return [{"type": "text", "text": {"content": ""}}]
    content = content[:MAX_RICH_TEXT_CHARS]
    return [
        {"type": "text", "text": {"content": content[i : i + MAX_TEXT_LENGTH]}}
        for i in range(0, len(content), MAX_TEXT_LENGTH)
    ]


def title_property(content: str) -> dict[str, Any]:
    return {"title": _text_segments(content)}


def rich_text_property(content: str) -> dict[str, Any]:
    return {"rich_text": _text_segments(content)}


def paragraph_blocks(body: str | None) -> list[dict[str, Any]]:
    """Split a body into paragraph blocks, one per non-empty paragraph.

    A paragraph longer than one block can hold continues in the following
    blocks. The result is not capped; callers send the first
    ``MAX_CHILD_BLOCKS`` with the page and append the rest.
    """
    if not body:
        return []

    blocks = []
    for paragraph in body.split("\n\n"):
        paragraph = paragraph.strip()
        for start in range(0, len(paragraph), MAX_RICH_TEXT_CHARS):
            blocks.append(
                {
                    "object": "block",
                    "type": "paragraph",
                    "paragraph": {
                        "rich_text": _text_segments(paragraph[start : start + MAX_RICH_TEXT_CHARS])
                    },
                }
            )
    return blocks


def to_remote_record(record: SourceRecord, config: NotionConfig) -> RemoteRecord:
    """Build the Notion page payload for a source record."""
    texts = {
        config.title_property: record.name,
        config.summary_property: record.summary,
        config.locator_property: record.locator,
    }
    for property_name, content in texts.items():
        if len(content) > MAX_RICH_TEXT_CHARS:
            log.warning(
                "property_text_truncated",
                source_id=record.id,
                property=property_name,
                length=len(content),
                kept=MAX_RICH_TEXT_CHARS,
            )

    return RemoteRecord(
        source_id=record.id,
        locator=record.locator,
        properties={
            config.title_property: title_property(record.name),
            config.summary_property: rich_text_property(record.summary),
            config.locator_property: rich_text_property(record.locator),
        },
        children=paragraph_blocks(record.body),
    )
