"""Navigation token encoding for calendar inline buttons.

Tokens look like ``calendar:<action>:<payload>``:

- ``month`` — payload ``YYYY-MM``
- ``day`` — payload ``YYYY-MM-DD``
- ``mark`` — payload is the decimal millisecond timestamp of a mark
- ``ignore`` — decorative button, no payload

Telegram caps ``callback_data`` at 64 characters; encoded tokens are clamped
by trimming the tail. A clamped token may no longer decode, in which case
:func:`parse_callback` returns ``None``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date

CALLBACK_PREFIX = "calendar"
CALLBACK_DATA_LIMIT = 64


class CallbackAction(enum.StrEnum):
    """Actions carried by calendar navigation tokens."""

    MONTH = "month"
    DAY = "day"
    MARK = "mark"
    IGNORE = "ignore"


@dataclass(frozen=True)
class CallbackData:
    """A decoded navigation token.

    Attributes:
        action: The decoded action.
        payload: Raw payload segment, ``None`` for ``ignore``.
        value: Typed payload — a ``date`` for ``month`` (first of the month)
            and ``day``, the ``int`` timestamp for ``mark``, ``None`` for
            ``ignore``.
    """

    action: CallbackAction
    payload: str | None = None
    value: date | int | None = None


def build_callback(action: CallbackAction | str, payload: str | None = None) -> str:
    """Encode a navigation token, clamped to :data:`CALLBACK_DATA_LIMIT`."""
    data = f"{CALLBACK_PREFIX}:{CallbackAction(action).value}"
    if payload:
        data = f"{data}:{payload}"
    return data[:CALLBACK_DATA_LIMIT]


def is_calendar_callback(data: str | None) -> bool:
    """Return True when *data* carries the calendar token prefix."""
    return bool(data) and data.startswith(f"{CALLBACK_PREFIX}:")


def parse_callback(data: str | None) -> CallbackData | None:
    """Decode a navigation token, or return ``None`` if it is not a valid one."""
    if not is_calendar_callback(data):
        return None
    _, _, rest = data.partition(":")
    raw_action, _, payload = rest.partition(":")
    try:
        action = CallbackAction(raw_action)
    except ValueError:
        return None

    if action is CallbackAction.IGNORE:
        return CallbackData(action=action) if not payload else None

    value = _parse_payload(action, payload)
    if value is None:
        return None
    return CallbackData(action=action, payload=payload, value=value)


def _parse_payload(action: CallbackAction, payload: str) -> date | int | None:
    try:
        if action is CallbackAction.MARK:
            if not payload.lstrip("-").isdigit():
                return None
            return int(payload)
        parts = payload.split("-")
        if action is CallbackAction.MONTH and len(parts) == 2:
            year, month = parts
            if len(year) != 4 or len(month) != 2:
                return None
            return date(int(year), int(month), 1)
        if action is CallbackAction.DAY and len(parts) == 3:
            year, month, day = parts
            if len(year) != 4 or len(month) != 2 or len(day) != 2:
                return None
            return date(int(year), int(month), int(day))
    except ValueError:
        return None
    return None
