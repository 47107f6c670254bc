"""Configuration models for the mirroring service."""

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class CursorAdvance(str, Enum):
    """How the cursor moves after a pass that dispatched records."""

    NOW = "now"
    MAX_KEY = "max_key"


class NotionConfig(BaseModel):
    """Configuration for the Notion API connection and target database."""

    api_token: str = Field(default=..., min_length=1, description="Notion integration token")
    database_id: str = Field(default=..., min_length=1, description="Target database identifier")
    api_base_url: str = Field(
        default="https://api.notion.com/v1", description="Notion API base URL"
    )
    notion_version: str = Field(default="2022-06-28", description="Notion-Version header value")
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="HTTP timeout for a single API request"
    )
    title_property: str = Field(default="name", description="Title property name")
    summary_property: str = Field(default="abstract", description="Summary rich text property")
    locator_property: str = Field(
        default="file_path", description="Rich text property used as the uniqueness key"
    )
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries for transient errors")
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_max_delay_seconds: float = Field(default=30.0, ge=0)


class LocalStoreConfig(BaseModel):
    """Configuration for the local SQLite store."""

    database_path: str = Field(default=..., min_length=1, description="Path to the SQLite file")
    source_table: str = Field(default="downloads", description="Table mirrored to Notion")
    id_column: str = Field(default="id", description="Row identifier column")
    name_column: str = Field(default="name")
    summary_column: str = Field(default="abstract")
    locator_column: str = Field(default="file_path")
    body_column: str | None = Field(
        default="content", description="Optional long-form body column"
    )
    cursor_column: str = Field(
        default="id", description="Ordering column compared against the cursor"
    )
    cursor_table: str = Field(default="sync_status", description="Table holding the cursor")
    cursor_key: int = Field(default=1, description="Primary key of the cursor row")
    bootstrap_cursor: int | float | str = Field(
        default=0, description="Sentinel cursor meaning 'beginning of history'"
    )

    @field_validator(
        "source_table",
        "id_column",
        "name_column",
        "summary_column",
        "locator_column",
        "body_column",
        "cursor_column",
        "cursor_table",
    )
    @classmethod
    def validate_identifier(cls, v: str | None) -> str | None:
        """Table and column names are interpolated into SQL, so restrict them."""
        if v is not None and not _IDENTIFIER.match(v):
            raise ValueError(f"'{v}' is not a valid SQL identifier")
        return v


class SyncConfig(BaseModel):
    """Configuration for a synchronization pass."""

    batch_size: int = Field(default=10, ge=1, le=100, description="Records per concurrent batch")
    inter_batch_delay_seconds: float = Field(
        default=1.0, ge=0.0, description="Pause between batches to respect rate limits"
    )
    item_timeout_seconds: float | None = Field(
        default=60.0, gt=0, description="Upper bound for one remote call; None disables"
    )
    existence_check_fail_open: bool = Field(
        default=True,
        description="Treat a failed existence check as 'not found' (may write duplicates)",
    )
    cursor_advance: CursorAdvance = Field(default=CursorAdvance.NOW)
    hold_back_failed_items: bool = Field(
        default=False,
        description="Only advance the cursor past records that were accounted for",
    )


class ScheduleConfig(BaseModel):
    """Configuration for the recurring trigger."""

    cron: str | None = Field(default="0 * * * *", description="Crontab expression")
    interval_minutes: int | None = Field(
        default=None, ge=1, description="Fixed interval, used when cron is not set"
    )
    run_on_startup: bool = Field(default=True, description="Run one pass at process start")

    @model_validator(mode="after")
    def validate_trigger(self) -> "ScheduleConfig":
        if not self.cron and self.interval_minutes is None:
            raise ValueError("either schedule.cron or schedule.interval_minutes must be set")
        return self


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the APP_ prefix (and from a local .env file).
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    notion: NotionConfig
    local_store: LocalStoreConfig
    sync: SyncConfig = Field(default_factory=SyncConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
