"""Persisted calendar snapshot schema.

Snapshot layout (``version`` is reserved for format evolution and is always 1)::

    {
        "version": 1,
        "defaultLabel": "✅",
        "viewDate": "2024-01-09T23:00:00.000Z",
        "marks": [{"timestamp": 1704875400000, "label": "★", "reason": "..."}]
    }

:func:`check_snapshot` performs the structural checks and returns a tagged
result; :func:`load_snapshot` is the raising variant used by
``Calendar.from_json``. Per-mark timestamps only need to be numbers here —
non-finite values pass the schema and are dropped by the engine, so one bad
row cannot invalidate a whole calendar.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from inline_calendar.core.dates import parse_iso_datetime
from inline_calendar.core.errors import SnapshotValidationError

SNAPSHOT_VERSION = 1


def _present_or_absent(value: Any) -> Any:
    """Optional fields may be omitted, but never given as null."""
    if value is None:
        raise ValueError("must be omitted rather than null")
    return value


OmittableText = Annotated[StrictStr | None, BeforeValidator(_present_or_absent)]


class SerializedMark(BaseModel):
    """One persisted mark row."""

    timestamp: StrictInt | StrictFloat
    label: StrictStr
    reason: OmittableText = None
    model_config = ConfigDict(extra="ignore")


class CalendarSnapshot(BaseModel):
    """The persisted form of a calendar."""

    # Reserved for format evolution; any value is accepted on read.
    version: Any = SNAPSHOT_VERSION
    default_label: OmittableText = Field(default=None, alias="defaultLabel")
    view_date: datetime = Field(alias="viewDate")
    marks: list[SerializedMark] = Field(default_factory=list)
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("view_date", mode="before")
    @classmethod
    def _parse_view_date(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("viewDate must be an ISO-8601 string")
        try:
            return parse_iso_datetime(value)
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"viewDate {value!r} is not a valid instant") from exc


@dataclass(frozen=True)
class SnapshotCheck:
    """Outcome of :func:`check_snapshot`: either a snapshot or an error string."""

    snapshot: CalendarSnapshot | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


def _summarize(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    suffix = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    return f"{location}: {first['msg']}{suffix}"


def check_snapshot(data: Any) -> SnapshotCheck:
    """Validate *data* (a mapping or JSON text) against the snapshot schema."""
    if isinstance(data, str | bytes | bytearray):
        try:
            data = json.loads(data)
        except (ValueError, RecursionError) as exc:
            return SnapshotCheck(error=f"invalid JSON: {exc}")

    if not isinstance(data, Mapping):
        return SnapshotCheck(error=f"expected an object, got {type(data).__name__}")

    try:
        snapshot = CalendarSnapshot.model_validate(dict(data))
    except ValidationError as exc:
        return SnapshotCheck(error=_summarize(exc))
    return SnapshotCheck(snapshot=snapshot)


def load_snapshot(data: Any) -> CalendarSnapshot:
    """Return the validated snapshot for *data* or raise :class:`SnapshotValidationError`."""
    result = check_snapshot(data)
    if result.snapshot is None:
        raise SnapshotValidationError(result.error or "unknown error")
    return result.snapshot
