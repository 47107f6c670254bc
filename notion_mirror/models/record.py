"""Pydantic models for cursors, source rows and remote pages."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SyncCursor(BaseModel):
    """Watermark: everything up to and including ``value`` is mirrored remotely."""

    model_config = ConfigDict(frozen=True)

    value: int | float | str = Field(default=..., description="Timestamp string or ordering key")
    is_sentinel: bool = Field(
        default=False, description="True when no pass has completed yet"
    )

    def is_behind(self, other: "SyncCursor") -> bool:
        """Return True if this cursor orders strictly before ``other``.

        Numbers compare with numbers and strings with strings. Otherwise
        neither cursor is considered behind the other, except that a sentinel
        is always behind a persisted cursor.
        """
        if self.is_sentinel and not other.is_sentinel:
            return True
        if isinstance(self.value, str) != isinstance(other.value, str):
            return False
        return self.value < other.value  # type: ignore[operator]


class SourceRecord(BaseModel):
    """Immutable snapshot of one local row taken at selection time."""

    model_config = ConfigDict(frozen=True)

    id: int | float | str = Field(default=..., description="Row identifier")
    name: str = Field(default="", description="Display name")
    summary: str = Field(default="", description="Free-text summary")
    locator: str = Field(default="", description="Path/locator used for duplicate suppression")
    body: str | None = Field(default=None, description="Optional long-form content")
    cursor_value: int | float | str | None = Field(
        default=None, description="Value of the ordering column for this row"
    )


class RemoteRecord(BaseModel):
    """Notion page payload built from a SourceRecord."""

    source_id: int | float | str = Field(default=..., description="Identifier of the originating row")
    locator: str = Field(default="")
    properties: dict[str, Any] = Field(default_factory=dict)
    children: list[dict[str, Any]] = Field(default_factory=list)


class ItemResult(BaseModel):
    """Outcome of delivering one RemoteRecord."""

    source_id: int | float | str
    locator: str = ""
    success: bool
    remote_id: str | None = None
    error: str | None = None


class BatchResult(BaseModel):
    """Per-item outcomes for one dispatched batch."""

    batch_index: int = Field(default=..., ge=0)
    items: list[ItemResult] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)
