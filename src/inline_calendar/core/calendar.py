"""Calendar engine — marks, month/day inline keyboards, snapshot round trips.

A :class:`Calendar` owns a set of :class:`Mark` objects keyed by their exact
millisecond timestamp and a *view date* cursor (always local midnight) that
remembers which month or day was last rendered. It knows nothing about
storage or the chat protocol: views are returned as
:class:`~inline_calendar.core.markup.InlineKeyboardMarkup` and persistence goes
through :meth:`Calendar.to_json` / :meth:`Calendar.from_json` /
:meth:`Calendar.revive`.

All engine calls are synchronous; one instance is owned by one conversation
and mutated sequentially.
"""

from __future__ import annotations

import json
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from inline_calendar.core.callbacks import CallbackAction, build_callback
from inline_calendar.core.dates import (
    DateInput,
    Granularity,
    add_months,
    bucket_key,
    coerce_datetime,
    coerce_millis,
    days_in_month,
    format_day_key,
    format_day_title,
    format_month_key,
    format_month_title,
    format_time,
    from_millis,
    is_same_day,
    normalize_date,
    to_iso_utc,
    truncate,
)
from inline_calendar.core.errors import InvalidArgumentError, SnapshotValidationError
from inline_calendar.core.markup import InlineKeyboardButton, InlineKeyboardMarkup
from inline_calendar.core.snapshot import SNAPSHOT_VERSION, load_snapshot

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "✅"
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
PREVIOUS_TEXT = "◀️"
NEXT_TEXT = "▶️"
EMPTY_CELL_TEXT = " "
NO_MARKS_TEXT = "No marks"
BACK_TO_MONTH_TEXT = "Back to month"
REASON_MAX_LENGTH = 24

_RANGE_ERRORS = (OverflowError, OSError, ValueError)


@dataclass(frozen=True)
class Mark:
    """A labelled, optionally annotated instant.

    Attributes:
        timestamp: Milliseconds since the epoch; the mark's identity.
        label: Short display string shown on grid cells.
        reason: Free-text annotation, ``None`` when absent.
    """

    timestamp: int
    label: str
    reason: str | None = None

    @property
    def date(self) -> datetime:
        """Local wall-clock datetime of the mark."""
        return from_millis(self.timestamp)

    def to_json(self) -> dict[str, Any]:
        serialized: dict[str, Any] = {"timestamp": self.timestamp, "label": self.label}
        if self.reason is not None:
            serialized["reason"] = self.reason
        return serialized


@dataclass
class CalendarOptions:
    """Per-calendar construction options."""

    default_label: str | None = None


def _button(
    text: str, action: CallbackAction, payload: str | None = None
) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=text, callback_data=build_callback(action, payload))


def _ignore_button(text: str) -> InlineKeyboardButton:
    return _button(text, CallbackAction.IGNORE)


def _day_cell_text(day: int, marks: list[Mark]) -> str:
    if not marks:
        return str(day)
    if len(marks) == 1:
        return f"{marks[0].label} {day}"
    return f"{marks[0].label} {day} (+{len(marks) - 1})"


def _mark_row_text(mark: Mark) -> str:
    reason_suffix = f" • {truncate(mark.reason, REASON_MAX_LENGTH)}" if mark.reason else ""
    return f"{format_time(mark.date)} {mark.label}{reason_suffix}".strip()


def _usable_timestamp(value: float) -> int | None:
    """Return *value* as an integer timestamp, or None if it cannot be a date."""
    if not math.isfinite(value):
        return None
    timestamp = int(value)
    try:
        from_millis(timestamp)
    except _RANGE_ERRORS:
        return None
    return timestamp


class Calendar:
    """A per-conversation calendar with marks and a view-date cursor."""

    def __init__(self, default_label: str | None = None) -> None:
        self._view_date: datetime = normalize_date(datetime.now())
        self._marks: dict[int, Mark] = {}
        self._default_label: str = default_label or DEFAULT_LABEL

    @classmethod
    def from_options(cls, options: CalendarOptions | None = None) -> Calendar:
        return cls(default_label=options.default_label if options else None)

    def __repr__(self) -> str:
        return (
            f"Calendar(default_label={self._default_label!r}, "
            f"view_date={self._view_date.date().isoformat()!r}, marks={len(self._marks)})"
        )

    @property
    def default_label(self) -> str:
        return self._default_label

    @property
    def view_date(self) -> datetime:
        """The date last rendered (or revived), normalized to local midnight."""
        return self._view_date

    # ------------------------------------------------------------------
    # Marks
    # ------------------------------------------------------------------

    def mark(
        self,
        date: DateInput | None = None,
        label: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Mark the exact instant *date* (default: now).

        An existing mark at the same millisecond is replaced. Raises
        :class:`InvalidArgumentError` for non-finite or unrepresentable dates.
        """
        timestamp = coerce_millis(datetime.now() if date is None else date)
        resolved_label = self._default_label if label is None else label
        self._marks[timestamp] = Mark(timestamp=timestamp, label=resolved_label, reason=reason)
        logger.debug(
            "Calendar mark set",
            extra={"timestamp": timestamp, "label": resolved_label},
        )

    def unmark(
        self,
        date: DateInput | None = None,
        granularity: Granularity | str = Granularity.DAY,
    ) -> int:
        """Remove every mark in the same *granularity* bucket as *date*.

        Returns the number of marks removed; removing nothing is not an error.
        """
        try:
            bucket = Granularity(granularity)
        except ValueError as exc:
            choices = ", ".join(g.value for g in Granularity)
            raise InvalidArgumentError(
                "granularity", granularity, f"expected one of: {choices}"
            ) from exc

        target = datetime.now() if date is None else date
        if bucket is Granularity.EXACT:
            removed = 1 if self._marks.pop(coerce_millis(target), None) is not None else 0
        else:
            key = bucket_key(coerce_datetime(target), bucket)
            doomed = [
                ts for ts, mark in self._marks.items() if bucket_key(mark.date, bucket) == key
            ]
            for timestamp in doomed:
                del self._marks[timestamp]
            removed = len(doomed)

        logger.debug(
            "Calendar marks removed",
            extra={"granularity": bucket.value, "removed": removed},
        )
        return removed

    def get_marked(self) -> list[Mark]:
        """Return a fresh list of every mark, in no particular order."""
        return list(self._marks.values())

    def get_mark(self, timestamp: int) -> Mark | None:
        """Return the mark at exactly *timestamp* milliseconds, if any."""
        return self._marks.get(timestamp)

    def get_marks_for_date(self, date: DateInput) -> list[Mark]:
        """Return the marks on *date*'s local calendar day, earliest first."""
        target = coerce_datetime(date)
        marks = [mark for mark in self._marks.values() if is_same_day(mark.date, target)]
        return sorted(marks, key=lambda mark: mark.timestamp)

    def _marks_by_day(self, year: int, month: int) -> dict[int, list[Mark]]:
        grouped: dict[int, list[Mark]] = defaultdict(list)
        for mark in sorted(self._marks.values(), key=lambda m: m.timestamp):
            moment = mark.date
            if moment.year == year and moment.month == month:
                grouped[moment.day].append(mark)
        return grouped

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_month_view(self, date: DateInput | None = None) -> InlineKeyboardMarkup:
        """Render the month containing *date* (default: the current view date).

        Layout: a navigation header, a Monday-first weekday header, then the
        day grid padded with blank cells into complete weeks.
        """
        if date is not None:
            self._view_date = coerce_datetime(date)
        self._view_date = normalize_date(self._view_date)

        current = self._view_date
        year, month = current.year, current.month
        previous_month = format_month_key(add_months(current, -1))
        next_month = format_month_key(add_months(current, 1))

        rows: list[list[InlineKeyboardButton]] = [
            [
                _button(PREVIOUS_TEXT, CallbackAction.MONTH, previous_month),
                _ignore_button(format_month_title(current)),
                _button(NEXT_TEXT, CallbackAction.MONTH, next_month),
            ],
            [_ignore_button(label) for label in WEEKDAY_LABELS],
        ]

        offset = current.replace(day=1).weekday()
        total_days = days_in_month(year, month)
        total_cells = -(-(offset + total_days) // 7) * 7
        marks_by_day = self._marks_by_day(year, month)

        for cell in range(total_cells):
            if cell % 7 == 0:
                rows.append([])
            day = cell - offset + 1
            if day < 1 or day > total_days:
                rows[-1].append(_ignore_button(EMPTY_CELL_TEXT))
                continue
            rows[-1].append(
                _button(
                    _day_cell_text(day, marks_by_day.get(day, [])),
                    CallbackAction.DAY,
                    format_day_key(current.replace(day=day)),
                )
            )

        return InlineKeyboardMarkup(inline_keyboard=rows)

    def get_day_view(self, date: DateInput | None = None) -> InlineKeyboardMarkup:
        """Render the marks of a single day (default: the current view date)."""
        target = normalize_date(coerce_datetime(date) if date is not None else self._view_date)
        self._view_date = target
        previous_day = format_day_key(target - timedelta(days=1))
        next_day = format_day_key(target + timedelta(days=1))

        rows: list[list[InlineKeyboardButton]] = [
            [
                _button(PREVIOUS_TEXT, CallbackAction.DAY, previous_day),
                _ignore_button(format_day_title(target)),
                _button(NEXT_TEXT, CallbackAction.DAY, next_day),
            ]
        ]

        marks = self.get_marks_for_date(target)
        if not marks:
            rows.append([_ignore_button(NO_MARKS_TEXT)])
        for mark in marks:
            rows.append([_button(_mark_row_text(mark), CallbackAction.MARK, str(mark.timestamp))])

        rows.append(
            [_button(BACK_TO_MONTH_TEXT, CallbackAction.MONTH, format_month_key(target))]
        )
        return InlineKeyboardMarkup(inline_keyboard=rows)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> dict[str, Any]:
        """Return the snapshot dict; marks are sorted by timestamp."""
        marks = sorted(self._marks.values(), key=lambda mark: mark.timestamp)
        return {
            "version": SNAPSHOT_VERSION,
            "defaultLabel": self._default_label,
            "viewDate": to_iso_utc(self._view_date),
            "marks": [mark.to_json() for mark in marks],
        }

    def to_json_string(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: Any) -> Calendar:
        """Build a calendar from a snapshot mapping or its JSON text.

        Raises :class:`SnapshotValidationError` when the snapshot fails the
        structural checks. Individual marks whose timestamp cannot be a date
        (NaN, infinity, out of range) are skipped.
        """
        snapshot = load_snapshot(data)
        calendar = cls(default_label=snapshot.default_label)
        calendar._view_date = normalize_date(snapshot.view_date)

        skipped = 0
        for entry in snapshot.marks:
            timestamp = _usable_timestamp(entry.timestamp)
            if timestamp is None:
                skipped += 1
                continue
            calendar._marks[timestamp] = Mark(
                timestamp=timestamp, label=entry.label, reason=entry.reason
            )

        if skipped:
            logger.warning(
                "Skipped unusable marks while loading calendar snapshot",
                extra={"skipped_marks": skipped, "loaded_marks": len(calendar._marks)},
            )
        return calendar

    @classmethod
    def revive(cls, value: Any) -> Calendar | None:
        """Return *value* as a live calendar, or ``None`` if it cannot be one.

        Live instances are returned unchanged; anything else goes through
        :meth:`from_json` with validation failures collapsed into ``None``.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        try:
            return cls.from_json(value)
        except SnapshotValidationError as exc:
            logger.debug("Could not revive calendar", extra={"error": exc.detail})
            return None
