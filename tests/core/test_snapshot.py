"""Tests for the snapshot schema and its tagged validation result."""

from __future__ import annotations

from datetime import datetime

import pytest

from inline_calendar.core.errors import SnapshotValidationError
from inline_calendar.core.snapshot import (
    SNAPSHOT_VERSION,
    CalendarSnapshot,
    check_snapshot,
    load_snapshot,
)

pytestmark = pytest.mark.unit


class TestCheckSnapshot:
    def test_valid_mapping(self):
        result = check_snapshot(
            {
                "version": 1,
                "defaultLabel": "★",
                "viewDate": "2024-01-10T00:00:00",
                "marks": [{"timestamp": 1704875400000, "label": "★", "reason": "r"}],
            }
        )
        assert result.ok
        assert result.error is None
        snapshot = result.snapshot
        assert isinstance(snapshot, CalendarSnapshot)
        assert snapshot.default_label == "★"
        assert snapshot.view_date == datetime(2024, 1, 10)
        assert snapshot.marks[0].reason == "r"

    def test_defaults(self):
        result = check_snapshot({"viewDate": "2024-01-10"})
        assert result.ok
        assert result.snapshot.version == SNAPSHOT_VERSION
        assert result.snapshot.default_label is None
        assert result.snapshot.marks == []

    def test_json_text_and_bytes(self):
        text = '{"viewDate": "2024-01-10T00:00:00.000Z"}'
        assert check_snapshot(text).ok
        assert check_snapshot(text.encode()).ok

    def test_error_names_failing_field(self):
        result = check_snapshot({"viewDate": "2024-01-10", "marks": [{"timestamp": "x"}]})
        assert not result.ok
        assert result.snapshot is None
        assert result.error.startswith("marks.0.")
        assert "more" in result.error

    def test_missing_view_date(self):
        result = check_snapshot({"marks": []})
        assert not result.ok
        assert "viewDate" in result.error

    def test_invalid_json(self):
        result = check_snapshot("{not json")
        assert not result.ok
        assert result.error.startswith("invalid JSON")

    def test_too_deeply_nested_json(self):
        result = check_snapshot("[" * 200_000)
        assert not result.ok
        assert result.error.startswith("invalid JSON")

    @pytest.mark.parametrize("data", [None, 3, [1, 2], "[]", '"text"'])
    def test_non_objects(self, data):
        result = check_snapshot(data)
        assert not result.ok
        assert result.error.startswith("expected an object")

    def test_version_value_is_not_checked(self):
        assert check_snapshot({"viewDate": "2024-01-10", "version": "1"}).ok

    def test_null_default_label_rejected(self):
        result = check_snapshot({"viewDate": "2024-01-10", "defaultLabel": None})
        assert not result.ok
        assert result.error.startswith("defaultLabel")

    def test_null_reason_rejected(self):
        result = check_snapshot(
            {"viewDate": "2024-01-10", "marks": [{"timestamp": 1, "label": "x", "reason": None}]}
        )
        assert not result.ok
        assert result.error.startswith("marks.0.reason")

    def test_non_finite_timestamps_pass_the_schema(self):
        result = check_snapshot(
            {"viewDate": "2024-01-10", "marks": [{"timestamp": float("nan"), "label": "x"}]}
        )
        assert result.ok


class TestLoadSnapshot:
    def test_returns_snapshot(self):
        snapshot = load_snapshot({"viewDate": "2024-01-10"})
        assert snapshot.view_date == datetime(2024, 1, 10)

    def test_raises_with_detail(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            load_snapshot({"viewDate": "soon"})
        assert exc_info.value.detail.startswith("viewDate")
        assert str(exc_info.value).startswith("Cannot parse calendar from provided data:")
