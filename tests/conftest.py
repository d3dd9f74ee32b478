"""Shared fixtures for the calendar test suite."""

from __future__ import annotations

import time
from typing import Any

import pytest

from inline_calendar.core.calendar import Calendar


class FakeStatePool:
    """In-memory stand-in for an asyncpg pool serving the ``state`` table.

    Values are kept as JSON text, the way asyncpg hands back JSONB columns
    when no codec is registered.
    """

    def __init__(self) -> None:
        self.rows: dict[str, tuple[str, int]] = {}
        self.executed: list[str] = []
        self.closed = False

    async def fetchval(self, query: str, *args: Any) -> Any:
        sql = " ".join(query.split())
        if sql.startswith("SELECT value FROM state"):
            row = self.rows.get(args[0])
            return row[0] if row is not None else None
        if sql.startswith("INSERT INTO state"):
            key, value = args
            version = self.rows[key][1] + 1 if key in self.rows else 1
            self.rows[key] = (value, version)
            return version
        raise AssertionError(f"Unexpected fetchval query: {sql}")

    async def execute(self, query: str, *args: Any) -> str:
        sql = " ".join(query.split())
        self.executed.append(sql)
        if sql.startswith("DELETE FROM state"):
            self.rows.pop(args[0], None)
            return "DELETE 1"
        return "OK"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def us_eastern_time(monkeypatch: pytest.MonkeyPatch):
    """Make US Eastern (with its DST rules) the process-local timezone."""
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def calendar() -> Calendar:
    """A fresh calendar using a star as its default label."""
    return Calendar(default_label="★")


@pytest.fixture
def state_pool() -> FakeStatePool:
    return FakeStatePool()
