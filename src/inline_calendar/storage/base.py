"""Storage contract consumed by the calendar control panel.

Backends store whatever they like for a key — a live ``Calendar`` or its
serialized snapshot. Values read back are passed through
``Calendar.revive``, so either shape round-trips.
"""

from typing import Any, Protocol

from inline_calendar.core.calendar import Calendar


class CalendarStorage(Protocol):
    """Protocol for calendar storage backends."""

    async def read(self, key: str) -> Any | None:
        """Return the stored value for *key*, or ``None`` if absent."""
        ...

    async def write(self, key: str, value: Calendar) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove *key*. No-op if the key does not exist."""
        ...
