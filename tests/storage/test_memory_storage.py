"""Tests for the in-process calendar storage."""

from __future__ import annotations

import pytest

from inline_calendar.core.calendar import Calendar
from inline_calendar.storage import CalendarStorage, MemoryStorage

pytestmark = pytest.mark.unit


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


async def test_read_missing_key_returns_none(storage: MemoryStorage):
    assert await storage.read("chat-1") is None


async def test_write_then_read_returns_same_instance(storage: MemoryStorage, calendar: Calendar):
    await storage.write("chat-1", calendar)
    assert await storage.read("chat-1") is calendar


async def test_write_replaces_previous_value(storage: MemoryStorage):
    first, second = Calendar(), Calendar()
    await storage.write("chat-1", first)
    await storage.write("chat-1", second)
    assert await storage.read("chat-1") is second


async def test_delete_removes_key(storage: MemoryStorage, calendar: Calendar):
    await storage.write("chat-1", calendar)
    await storage.delete("chat-1")
    assert await storage.read("chat-1") is None


async def test_delete_missing_key_is_noop(storage: MemoryStorage, calendar: Calendar):
    await storage.write("chat-1", calendar)
    await storage.delete("never-written")
    assert await storage.read("chat-1") is calendar


async def test_keys_are_independent(storage: MemoryStorage):
    first, second = Calendar(), Calendar()
    await storage.write("chat-1", first)
    await storage.write("chat-2", second)
    assert await storage.read("chat-1") is first
    assert await storage.read("chat-2") is second


def test_satisfies_storage_protocol(storage: MemoryStorage):
    backend: CalendarStorage = storage
    assert callable(backend.read)
    assert callable(backend.write)
    assert callable(backend.delete)
