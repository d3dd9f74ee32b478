"""Storage backends for persisting calendars between chat turns."""

from inline_calendar.storage.base import CalendarStorage
from inline_calendar.storage.memory import MemoryStorage
from inline_calendar.storage.state import StateStoreStorage

__all__ = ["CalendarStorage", "MemoryStorage", "StateStoreStorage"]
