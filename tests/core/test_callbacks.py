"""Tests for calendar navigation tokens."""

from __future__ import annotations

from datetime import date

import pytest

from inline_calendar.core.callbacks import (
    CALLBACK_DATA_LIMIT,
    CallbackAction,
    CallbackData,
    build_callback,
    is_calendar_callback,
    parse_callback,
)

pytestmark = pytest.mark.unit


class TestBuildCallback:
    def test_month_token(self):
        assert build_callback(CallbackAction.MONTH, "2024-02") == "calendar:month:2024-02"

    def test_day_token_accepts_plain_string_action(self):
        assert build_callback("day", "2024-01-10") == "calendar:day:2024-01-10"

    def test_ignore_token_has_no_payload(self):
        assert build_callback(CallbackAction.IGNORE) == "calendar:ignore"

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            build_callback("week", "2024-W02")

    def test_long_payload_is_clamped(self):
        token = build_callback(CallbackAction.MARK, "9" * 100)
        assert len(token) == CALLBACK_DATA_LIMIT == 64
        assert token.startswith("calendar:mark:999")


class TestParseCallback:
    def test_month(self):
        assert parse_callback("calendar:month:2024-02") == CallbackData(
            action=CallbackAction.MONTH, payload="2024-02", value=date(2024, 2, 1)
        )

    def test_day(self):
        parsed = parse_callback("calendar:day:2024-01-10")
        assert parsed is not None
        assert parsed.action is CallbackAction.DAY
        assert parsed.value == date(2024, 1, 10)

    def test_mark(self):
        parsed = parse_callback("calendar:mark:1704875400000")
        assert parsed is not None
        assert parsed.action is CallbackAction.MARK
        assert parsed.value == 1704875400000

    def test_ignore(self):
        assert parse_callback("calendar:ignore") == CallbackData(action=CallbackAction.IGNORE)

    def test_built_tokens_decode(self):
        token = build_callback(CallbackAction.DAY, "2023-12-31")
        parsed = parse_callback(token)
        assert parsed is not None
        assert parsed.value == date(2023, 12, 31)

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "",
            "calendar",
            "calendar:",
            "other:month:2024-02",
            "calendar:week:2024-02",
            "calendar:month:2024-13",
            "calendar:month:2024-2",
            "calendar:month:24-02",
            "calendar:month:2024-02-01",
            "calendar:day:2024-02-30",
            "calendar:day:2024-02",
            "calendar:day:2024-1-10",
            "calendar:mark:",
            "calendar:mark:12a",
            "calendar:ignore:extra",
        ],
    )
    def test_invalid_tokens_return_none(self, data):
        assert parse_callback(data) is None

    def test_truncated_token_returns_none(self):
        token = build_callback(CallbackAction.DAY, "2024-01-10" + "x" * 60)
        assert len(token) == CALLBACK_DATA_LIMIT
        assert parse_callback(token) is None


class TestIsCalendarCallback:
    @pytest.mark.parametrize("data", ["calendar:ignore", "calendar:month:2024-02"])
    def test_prefixed(self, data):
        assert is_calendar_callback(data)

    @pytest.mark.parametrize("data", [None, "", "calendar", "calendars:day:2024-01-10"])
    def test_not_prefixed(self, data):
        assert not is_calendar_callback(data)
