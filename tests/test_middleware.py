"""Tests for the chat middleware that exposes the control panel."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from inline_calendar import middleware as middleware_module
from inline_calendar.config import CalendarAppConfig, LoggingConfig, StorageConfig
from inline_calendar.control_panel import CalendarControlPanel
from inline_calendar.middleware import (
    CalendarMiddleware,
    CalendarPluginOptions,
    create_calendar_middleware,
)
from inline_calendar.storage import MemoryStorage

pytestmark = pytest.mark.unit


class TestCall:
    async def test_attaches_control_panel_and_calls_next(self):
        middleware = create_calendar_middleware()
        ctx = SimpleNamespace()
        call_next = AsyncMock(return_value="handled")

        result = await middleware(ctx, call_next)

        assert result == "handled"
        call_next.assert_awaited_once_with()
        assert isinstance(ctx.calendar, CalendarControlPanel)

    async def test_same_panel_shared_across_updates(self):
        middleware = create_calendar_middleware()
        first, second = SimpleNamespace(), SimpleNamespace()
        await middleware(first, AsyncMock())
        await middleware(second, AsyncMock())
        assert first.calendar is second.calendar

    async def test_existing_attribute_is_left_alone(self):
        middleware = create_calendar_middleware()
        sentinel = object()
        ctx = SimpleNamespace(calendar=sentinel)
        await middleware(ctx, AsyncMock())
        assert ctx.calendar is sentinel

    async def test_handlers_see_panel_during_next(self):
        middleware = create_calendar_middleware(CalendarPluginOptions(default_label="★"))
        ctx = SimpleNamespace()

        async def handler():
            return await ctx.calendar.create("chat-1")

        created = await middleware(ctx, handler)
        assert created.default_label == "★"

    async def test_errors_from_next_propagate(self):
        middleware = create_calendar_middleware()
        with pytest.raises(RuntimeError):
            await middleware(SimpleNamespace(), AsyncMock(side_effect=RuntimeError("boom")))


class TestFactory:
    def test_defaults_to_memory_storage(self):
        middleware = create_calendar_middleware()
        assert isinstance(middleware.control_panel.storage, MemoryStorage)
        assert middleware.control_panel.default_label is None

    def test_uses_given_storage_and_label(self):
        storage = MemoryStorage()
        middleware = create_calendar_middleware(
            CalendarPluginOptions(storage=storage, default_label="◎")
        )
        assert middleware.control_panel.storage is storage
        assert middleware.control_panel.default_label == "◎"

    def test_separate_middlewares_do_not_share_memory(self):
        a, b = create_calendar_middleware(), create_calendar_middleware()
        assert a.control_panel.storage is not b.control_panel.storage


class TestFromConfig:
    async def test_configures_logging_and_storage(self, monkeypatch):
        configure = []
        monkeypatch.setattr(
            middleware_module, "configure_logging", lambda **kwargs: configure.append(kwargs)
        )
        config = CalendarAppConfig(
            default_label="★",
            storage=StorageConfig(),
            logging=LoggingConfig(level="DEBUG", format="json"),
        )

        middleware = await CalendarMiddleware.from_config(config)

        assert configure == [{"level": "DEBUG", "fmt": "json", "log_file": None}]
        assert isinstance(middleware.control_panel.storage, MemoryStorage)
        assert middleware.control_panel.default_label == "★"

    async def test_real_logging_configuration(self):
        await CalendarMiddleware.from_config(CalendarAppConfig())
        root = logging.getLogger()
        try:
            assert root.level == logging.INFO
        finally:
            root.handlers.clear()
            root.setLevel(logging.WARNING)
