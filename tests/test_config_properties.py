"""Property-based tests for configuration models and the config loader.

Feature: notion-mirror
"""

import os
import tempfile
from pathlib import Path

import pytest
import structlog
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from notion_mirror.models import AppConfig, LocalStoreConfig, ScheduleConfig, SyncConfig
from notion_mirror.models.config import CursorAdvance
from notion_mirror.utils.config_loader import ConfigLoader, ConfigurationError

log = structlog.stdlib.get_logger()

VALID_YAML = """
notion:
  api_token: ${TEST_NOTION_KEY}
  database_id: db-123
local_store:
  database_path: /tmp/downloads.db
  cursor_column: created_at
sync:
  batch_size: 5
  inter_batch_delay_seconds: 0.5
schedule:
  interval_minutes: 15
"""


@given(st.integers(min_value=1, max_value=100))
def test_batch_size_within_bounds_is_accepted(batch_size: int):
    config = SyncConfig(batch_size=batch_size)

    assert config.batch_size == batch_size


@given(st.integers().filter(lambda x: x < 1 or x > 100))
def test_batch_size_out_of_bounds_is_rejected(batch_size: int):
    log.info("test_batch_size_out_of_bounds_is_rejected", batch_size=batch_size)

    with pytest.raises(ValidationError) as exc_info:
        SyncConfig(batch_size=batch_size)

    assert "batch_size" in str(exc_info.value)


@given(st.floats(max_value=-0.001, allow_nan=False))
def test_negative_inter_batch_delay_is_rejected(delay: float):
    with pytest.raises(ValidationError):
        SyncConfig(inter_batch_delay_seconds=delay)


@pytest.mark.parametrize(
    "name", ["downloads; DROP TABLE x", "1table", "file-path", "name with space", ""]
)
def test_sql_identifiers_are_validated(name: str):
    with pytest.raises(ValidationError):
        LocalStoreConfig(database_path="x.db", source_table=name)


def test_body_column_may_be_disabled():
    config = LocalStoreConfig(database_path="x.db", body_column=None)

    assert config.body_column is None


def test_schedule_requires_cron_or_interval():
    with pytest.raises(ValidationError):
        ScheduleConfig(cron=None, interval_minutes=None)

    assert ScheduleConfig(cron=None, interval_minutes=30).interval_minutes == 30
    assert ScheduleConfig().cron == "0 * * * *"


def test_sync_defaults():
    sync = SyncConfig()

    assert sync.batch_size == 10
    assert sync.inter_batch_delay_seconds == 1.0
    assert sync.cursor_advance == CursorAdvance.NOW
    assert sync.existence_check_fail_open is True
    assert sync.hold_back_failed_items is False


def test_load_config_substitutes_environment_variables(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TEST_NOTION_KEY", "secret_from_env")

    with tempfile.TemporaryDirectory() as tmp_dir:
        config_path = Path(tmp_dir) / "default.yaml"
        config_path.write_text(VALID_YAML)

        config = ConfigLoader(config_dir=Path(tmp_dir)).load_config()

    assert isinstance(config, AppConfig)
    assert config.notion.api_token == "secret_from_env"
    assert config.sync.batch_size == 5
    assert config.schedule.interval_minutes == 15
    assert config.local_store.source_table == "downloads"


def test_load_config_uses_app_env_file(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TEST_NOTION_KEY", "k")
    monkeypatch.setenv("APP_ENV", "staging")

    with tempfile.TemporaryDirectory() as tmp_dir:
        (Path(tmp_dir) / "default.yaml").write_text(VALID_YAML)
        (Path(tmp_dir) / "staging.yaml").write_text(VALID_YAML.replace("batch_size: 5", "batch_size: 7"))

        config = ConfigLoader(config_dir=Path(tmp_dir)).load_config()

    assert config.sync.batch_size == 7


def test_missing_environment_variable_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("TEST_NOTION_KEY", raising=False)

    with tempfile.TemporaryDirectory() as tmp_dir:
        config_path = Path(tmp_dir) / "default.yaml"
        config_path.write_text(VALID_YAML)

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader().load_config(str(config_path))

    assert "TEST_NOTION_KEY" in str(exc_info.value)


def test_invalid_values_are_a_configuration_error(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TEST_NOTION_KEY", "k")

    with tempfile.TemporaryDirectory() as tmp_dir:
        config_path = Path(tmp_dir) / "default.yaml"
        config_path.write_text(VALID_YAML.replace("batch_size: 5", "batch_size: 500"))

        with pytest.raises(ConfigurationError):
            ConfigLoader().load_config(str(config_path))


def test_empty_and_missing_files_are_configuration_errors():
    with tempfile.TemporaryDirectory() as tmp_dir:
        empty = Path(tmp_dir) / "empty.yaml"
        empty.write_text("")

        with pytest.raises(ConfigurationError):
            ConfigLoader().load_config(str(empty))
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_config(str(Path(tmp_dir) / "nope.yaml"))
        with pytest.raises(ConfigurationError):
            ConfigLoader(config_dir=Path(tmp_dir) / "missing").load_config()


def test_validate_config_warns_about_now_cursor_on_identifier_column():
    config = AppConfig(
        notion={"api_token": "t", "database_id": "d"},
        local_store={"database_path": "x.db"},
        sync={"existence_check_fail_open": False, "hold_back_failed_items": True},
    )

    warnings = ConfigLoader().validate_config(config)

    assert len(warnings) == 1
    assert "cursor_column" in warnings[0]


def test_validate_config_is_quiet_for_consistent_settings():
    config = AppConfig(
        notion={"api_token": "t", "database_id": "d"},
        local_store={"database_path": "x.db", "cursor_column": "id"},
        sync={
            "cursor_advance": "max_key",
            "existence_check_fail_open": False,
            "hold_back_failed_items": True,
        },
    )

    assert ConfigLoader().validate_config(config) == []


def test_environment_overrides_nested_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_NOTION__API_TOKEN", "env-token")
    monkeypatch.setenv("APP_NOTION__DATABASE_ID", "env-db")
    monkeypatch.setenv("APP_LOCAL_STORE__DATABASE_PATH", "/data/env.db")

    config = AppConfig()

    assert config.notion.api_token == "env-token"
    assert config.local_store.database_path == "/data/env.db"
    assert os.environ["APP_NOTION__DATABASE_ID"] == config.notion.database_id


def test_validate_config_warns_when_failing_closed_without_hold_back():
    config = AppConfig(
        notion={"api_token": "t", "database_id": "d"},
        local_store={"database_path": "x.db", "cursor_column": "created_at"},
        sync={"existence_check_fail_open": False},
    )

    warnings = ConfigLoader().validate_config(config)

    assert len(warnings) == 1
    assert "hold_back_failed_items" in warnings[0]
