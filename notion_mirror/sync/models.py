"""Data models for synchronization passes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from notion_mirror.models.record import BatchResult


class PassState(str, Enum):
    """States of a single synchronization pass."""

    IDLE = "idle"
    READING_CURSOR = "reading_cursor"
    SELECTING = "selecting"
    FILTERING = "filtering"
    DISPATCHING = "dispatching"
    ADVANCING_CURSOR = "advancing_cursor"
    ABORTED = "aborted"
    SKIPPED = "skipped"


class SyncReport(BaseModel):
    """Report of one synchronization pass."""

    pass_id: str = Field(..., description="Correlation id bound into every log line of the pass")
    state: PassState = Field(default=PassState.IDLE, description="State the pass ended in")
    cursor_before: int | float | str | None = None
    cursor_after: int | float | str | None = None
    records_selected: int = Field(default=0, ge=0)
    duplicates_skipped: int = Field(default=0, ge=0)
    records_unverified: int = Field(
        default=0, ge=0, description="Held because the existence check failed while failing closed"
    )
    records_delivered: int = Field(default=0, ge=0)
    records_failed: int = Field(default=0, ge=0)
    batches: list[BatchResult] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime | None = None
    duration_seconds: float = Field(default=0.0, ge=0.0)
    errors: list[str] = Field(default_factory=list)

    @property
    def cursor_advanced(self) -> bool:
        return self.cursor_after is not None and self.cursor_after != self.cursor_before

    @property
    def skipped(self) -> bool:
        return self.state == PassState.SKIPPED

    @property
    def success(self) -> bool:
        """True when the pass finished without aborting and without item failures."""
        return self.state == PassState.IDLE and not self.errors
