"""Local wall-clock date helpers shared by the calendar engine.

All datetimes handled here are *naive* and represent local wall-clock time.
Aware datetimes coming in from callers are converted to local time and
stripped of their tzinfo at the boundary (:func:`coerce_datetime`).

Millisecond timestamps are the identity of a mark, so conversion to and from
``datetime`` is done with integer arithmetic to avoid float rounding.
"""

from __future__ import annotations

import enum
import math
from calendar import monthrange
from datetime import UTC, date, datetime, time, timedelta

from inline_calendar.core.errors import InvalidArgumentError

DateInput = datetime | date | int | float

_RANGE_ERRORS = (OverflowError, OSError, ValueError)


class Granularity(enum.StrEnum):
    """Bucket width used when removing marks by date."""

    EXACT = "exact"
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"


def to_millis(value: datetime) -> int:
    """Return the epoch millisecond value of *value*, truncating microseconds."""
    whole_seconds = int(value.replace(microsecond=0).timestamp())
    return whole_seconds * 1000 + value.microsecond // 1000


def from_millis(timestamp: int) -> datetime:
    """Return the naive local datetime for an epoch millisecond *timestamp*.

    Raises ``OverflowError``, ``OSError`` or ``ValueError`` when the instant
    is outside the range the platform can represent.
    """
    seconds, millis = divmod(timestamp, 1000)
    return datetime.fromtimestamp(seconds) + timedelta(milliseconds=millis)


def coerce_datetime(value: DateInput, *, argument: str = "date") -> datetime:
    """Convert a caller-supplied date value into a naive local datetime.

    Accepts ``datetime`` (aware values are converted to local time), ``date``
    (local midnight) and finite ``int``/``float`` millisecond timestamps.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(argument, value, "expected a date, not a bool")
    if isinstance(value, int | float):
        if not math.isfinite(value):
            raise InvalidArgumentError(argument, value, "timestamp is not finite")
        try:
            return from_millis(int(value))
        except _RANGE_ERRORS as exc:
            raise InvalidArgumentError(argument, value, "timestamp out of range") from exc
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise InvalidArgumentError(
        argument, value, "expected a datetime, date or millisecond timestamp"
    )


def coerce_millis(value: DateInput, *, argument: str = "date") -> int:
    """Like :func:`coerce_datetime` but return the epoch millisecond value."""
    if isinstance(value, int | float) and not isinstance(value, bool):
        # Validate range through the datetime conversion, keep the exact integer.
        coerce_datetime(value, argument=argument)
        return int(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        # Aware values name one instant; their local wall time can be ambiguous.
        moment = value
    else:
        moment = coerce_datetime(value, argument=argument)
    try:
        return to_millis(moment)
    except _RANGE_ERRORS as exc:
        raise InvalidArgumentError(argument, value, "date out of range") from exc


def normalize_date(value: datetime) -> datetime:
    """Return *value* at local midnight."""
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def bucket_key(value: datetime, granularity: Granularity) -> tuple[int, ...]:
    """Return the comparison key of *value* for a non-exact *granularity*."""
    if granularity is Granularity.HOUR:
        return (value.year, value.month, value.day, value.hour)
    if granularity is Granularity.DAY:
        return (value.year, value.month, value.day)
    if granularity is Granularity.MONTH:
        return (value.year, value.month)
    raise ValueError(f"No bucket key for granularity {granularity!r}")


def is_same_day(a: datetime, b: datetime) -> bool:
    return bucket_key(a, Granularity.DAY) == bucket_key(b, Granularity.DAY)


def add_months(value: datetime, months: int) -> datetime:
    """Return the first day of the month *months* away from *value*'s month."""
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def format_day_key(value: datetime) -> str:
    """``YYYY-MM-DD`` payload used in ``day`` navigation tokens."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_month_key(value: datetime) -> str:
    """``YYYY-MM`` payload used in ``month`` navigation tokens."""
    return f"{value.year:04d}-{value.month:02d}"


def format_month_title(value: datetime) -> str:
    return value.strftime("%B %Y")


def format_day_title(value: datetime) -> str:
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_time(value: datetime) -> str:
    return f"{value:%H:%M}"


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string into a naive local datetime.

    Strings carrying an offset (or ``Z``) are converted to local time; naive
    strings are taken as local wall-clock time already.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_iso_utc(value: datetime) -> str:
    """Render a naive local datetime as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC."""
    rendered = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def truncate(value: str, max_length: int) -> str:
    """Clamp *value* to *max_length* characters, ending with an ellipsis if cut."""
    if len(value) <= max_length:
        return value
    return f"{value[: max(0, max_length - 1)]}…"
