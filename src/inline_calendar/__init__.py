"""Inline-keyboard calendar with persistent marks for chat bots."""

from inline_calendar.control_panel import CalendarControlPanel
from inline_calendar.core.callbacks import (
    CallbackAction,
    CallbackData,
    build_callback,
    parse_callback,
)
from inline_calendar.core.calendar import Calendar, CalendarOptions, Mark
from inline_calendar.core.dates import Granularity
from inline_calendar.core.errors import (
    CalendarError,
    InvalidArgumentError,
    SnapshotValidationError,
)
from inline_calendar.core.markup import InlineKeyboardButton, InlineKeyboardMarkup
from inline_calendar.middleware import (
    CalendarMiddleware,
    CalendarPluginOptions,
    create_calendar_middleware,
)
from inline_calendar.storage import CalendarStorage, MemoryStorage, StateStoreStorage

__all__ = [
    "Calendar",
    "CalendarControlPanel",
    "CalendarError",
    "CalendarMiddleware",
    "CalendarOptions",
    "CalendarPluginOptions",
    "CalendarStorage",
    "CallbackAction",
    "CallbackData",
    "Granularity",
    "InlineKeyboardButton",
    "InlineKeyboardMarkup",
    "InvalidArgumentError",
    "Mark",
    "MemoryStorage",
    "SnapshotValidationError",
    "StateStoreStorage",
    "build_callback",
    "create_calendar_middleware",
    "parse_callback",
]
