"""Property-based tests for cursor and record models.

**Feature: notion-mirror, Property 2: Cursor monotonicity (ordering)**
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from notion_mirror.models.record import BatchResult, ItemResult, SourceRecord, SyncCursor
from notion_mirror.sync.models import PassState, SyncReport


@given(st.integers(), st.integers())
def test_integer_cursor_ordering(a: int, b: int):
    assert SyncCursor(value=a).is_behind(SyncCursor(value=b)) == (a < b)


@given(st.text(min_size=1), st.text(min_size=1))
def test_string_cursor_ordering(a: str, b: str):
    assert SyncCursor(value=a).is_behind(SyncCursor(value=b)) == (a < b)


@given(st.integers(), st.floats(allow_nan=False, allow_infinity=False))
def test_real_and_integer_cursors_order_together(a: int, b: float):
    """Epoch columns stored as REAL compare against INTEGER cursors."""
    assert SyncCursor(value=a).is_behind(SyncCursor(value=b)) == (a < b)
    assert SyncCursor(value=b).is_behind(SyncCursor(value=a)) == (b < a)


def test_real_values_are_kept_as_floats():
    record = SourceRecord(id=1, cursor_value=1718000000.25)

    assert record.cursor_value == 1718000000.25
    assert SyncCursor(value=1718000000.25).value == 1718000000.25


@given(st.one_of(st.integers(min_value=0), st.text()))
def test_sentinel_is_behind_any_persisted_cursor(value):
    sentinel = SyncCursor(value=0, is_sentinel=True)

    assert sentinel.is_behind(SyncCursor(value=value))
    assert not SyncCursor(value=value).is_behind(sentinel)


def test_mixed_types_are_not_ordered():
    assert not SyncCursor(value=5).is_behind(SyncCursor(value="2024-01-01"))
    assert not SyncCursor(value="2024-01-01").is_behind(SyncCursor(value=5))


def test_source_record_is_immutable():
    record = SourceRecord(id=1, name="a")

    with pytest.raises(ValidationError):
        record.name = "b"


def test_batch_result_counts():
    batch = BatchResult(
        batch_index=0,
        items=[
            ItemResult(source_id=1, success=True),
            ItemResult(source_id=2, success=False, error="boom"),
            ItemResult(source_id=3, success=True),
        ],
    )

    assert batch.succeeded == 2
    assert batch.failed == 1


def test_report_success_requires_idle_state_without_errors():
    from datetime import datetime, timezone

    now = datetime.now(timezone.utc)

    assert SyncReport(pass_id="p", state=PassState.IDLE, start_time=now).success
    assert not SyncReport(pass_id="p", state=PassState.IDLE, start_time=now, errors=["x"]).success
    assert not SyncReport(pass_id="p", state=PassState.ABORTED, start_time=now).success
    assert SyncReport(pass_id="p", state=PassState.SKIPPED, start_time=now).skipped
