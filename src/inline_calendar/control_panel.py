"""Control panel — named calendar lifecycle over an injected storage backend.

The control panel maps a calendar id (usually derived from the chat or user
id) to a :class:`~inline_calendar.core.calendar.Calendar`. It proxies reads
and writes to storage and revives whatever comes back; it never holds
calendar state itself.

Operations suspend only at the storage boundary. Storage errors propagate
unchanged, and there is no locking across a read-modify-write: two
concurrent ``create`` calls for the same id may both write, last write wins.
"""

from __future__ import annotations

import logging

from inline_calendar.core.calendar import Calendar, CalendarOptions
from inline_calendar.core.logging import calendar_context
from inline_calendar.storage.base import CalendarStorage

logger = logging.getLogger(__name__)


class CalendarControlPanel:
    """get/create/set/delete over named calendars.

    Args:
        storage: Backend implementing :class:`CalendarStorage`.
        default_label: Plugin-wide label applied to calendars created without
            their own ``default_label``.
    """

    def __init__(self, storage: CalendarStorage, default_label: str | None = None) -> None:
        self.storage = storage
        self.default_label = default_label

    def _resolve_options(self, options: CalendarOptions | None) -> CalendarOptions | None:
        if not self.default_label:
            return options
        if options is not None and options.default_label:
            return options
        return CalendarOptions(default_label=self.default_label)

    async def _read(self, calendar_id: str) -> Calendar | None:
        stored = await self.storage.read(calendar_id)
        calendar = Calendar.revive(stored)
        if stored is not None and calendar is None:
            logger.warning("Stored calendar could not be revived; treating as absent")
        return calendar

    async def get(self, calendar_id: str) -> Calendar | None:
        """Return the calendar stored under *calendar_id*, or ``None``."""
        with calendar_context(calendar_id):
            return await self._read(calendar_id)

    async def create(self, calendar_id: str, options: CalendarOptions | None = None) -> Calendar:
        """Return the existing calendar, or create and persist a new one.

        Never overwrites an existing calendar.
        """
        with calendar_context(calendar_id):
            existing = await self._read(calendar_id)
            if existing is not None:
                return existing

            created = Calendar.from_options(self._resolve_options(options))
            await self.storage.write(calendar_id, created)
            logger.info(
                "Calendar created",
                extra={"default_label": created.default_label},
            )
            return created

    async def set(self, calendar_id: str, calendar: Calendar) -> Calendar:
        """Persist *calendar* under *calendar_id* unconditionally and return it."""
        with calendar_context(calendar_id):
            await self.storage.write(calendar_id, calendar)
            return calendar

    async def delete(self, calendar_id: str) -> None:
        """Remove the calendar stored under *calendar_id*; no-op if absent."""
        with calendar_context(calendar_id):
            await self.storage.delete(calendar_id)
            logger.info("Calendar deleted")
