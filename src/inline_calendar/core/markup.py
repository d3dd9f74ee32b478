"""Inline keyboard models produced by the calendar views.

The shapes follow the Telegram Bot API ``InlineKeyboardMarkup`` object so the
result of :meth:`InlineKeyboardMarkup.to_payload` can be passed straight into
``reply_markup`` by whatever transport sends the message.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InlineKeyboardButton(BaseModel):
    """A single inline button.

    Every calendar button carries ``callback_data``; purely decorative
    buttons use the ``ignore`` action token.
    """

    text: str
    callback_data: str | None = None
    model_config = ConfigDict(frozen=True)


class InlineKeyboardMarkup(BaseModel):
    """Rows of inline buttons."""

    inline_keyboard: list[list[InlineKeyboardButton]] = Field(default_factory=list)

    def buttons(self) -> list[InlineKeyboardButton]:
        """Return every button, row by row."""
        return [button for row in self.inline_keyboard for button in row]

    def to_payload(self) -> dict[str, Any]:
        """Render as a Bot API ``reply_markup`` dict."""
        return self.model_dump(exclude_none=True)
