"""Chat middleware that exposes the calendar control panel on each update.

The middleware is an async callable ``(ctx, call_next)``: it attaches a
shared :class:`~inline_calendar.control_panel.CalendarControlPanel` as
``ctx.calendar`` (unless the context already carries one) and then hands
control to the rest of the pipeline. Handlers further down use
``ctx.calendar.create(chat_id)`` and friends.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from inline_calendar.config import CalendarAppConfig
from inline_calendar.control_panel import CalendarControlPanel
from inline_calendar.core.logging import configure_logging
from inline_calendar.storage.base import CalendarStorage
from inline_calendar.storage.factory import open_storage
from inline_calendar.storage.memory import MemoryStorage

logger = logging.getLogger(__name__)

NextFunction = Callable[[], Awaitable[Any]]

CONTEXT_ATTRIBUTE = "calendar"


@dataclass
class CalendarPluginOptions:
    """Options for :func:`create_calendar_middleware`.

    Attributes:
        storage: Storage backend; an in-process :class:`MemoryStorage` when unset.
        default_label: Label for calendars created without one of their own.
    """

    storage: CalendarStorage | None = None
    default_label: str | None = None


class CalendarMiddleware:
    """Attach a calendar control panel to every update context."""

    def __init__(
        self, storage: CalendarStorage | None = None, default_label: str | None = None
    ) -> None:
        self.control_panel = CalendarControlPanel(
            storage if storage is not None else MemoryStorage(),
            default_label=default_label,
        )

    @classmethod
    async def from_config(cls, config: CalendarAppConfig) -> CalendarMiddleware:
        """Configure logging and build the middleware from *config*.

        Opens the storage backend selected in ``[calendar.storage]``; for
        postgres the caller owns the pool (``middleware.control_panel.storage.pool``).
        """
        configure_logging(
            level=config.logging.level,
            fmt=config.logging.format,
            log_file=config.logging.log_file,
        )
        storage = await open_storage(config.storage)
        return cls(storage=storage, default_label=config.default_label)

    async def __call__(self, ctx: Any, call_next: NextFunction) -> Any:
        if not hasattr(ctx, CONTEXT_ATTRIBUTE):
            setattr(ctx, CONTEXT_ATTRIBUTE, self.control_panel)
        return await call_next()


def create_calendar_middleware(options: CalendarPluginOptions | None = None) -> CalendarMiddleware:
    """Create the calendar middleware from *options*."""
    options = options or CalendarPluginOptions()
    return CalendarMiddleware(storage=options.storage, default_label=options.default_label)
