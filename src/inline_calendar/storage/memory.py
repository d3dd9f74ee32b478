"""In-process calendar storage.

Holds live ``Calendar`` instances in a dict, so a read returns the very
object that was written. State is lost when the process exits; use
:class:`~inline_calendar.storage.state.StateStoreStorage` to persist across
restarts.
"""

from __future__ import annotations

from typing import Any

from inline_calendar.core.calendar import Calendar


class MemoryStorage:
    """Dict-backed storage for development and tests."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    async def read(self, key: str) -> Any | None:
        return self._values.get(key)

    async def write(self, key: str, value: Calendar) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
