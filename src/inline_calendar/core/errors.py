"""Exception hierarchy for the calendar engine."""

from __future__ import annotations


class CalendarError(Exception):
    """Base class for all calendar engine errors."""


class InvalidArgumentError(CalendarError, ValueError):
    """Raised when a call receives a date or granularity it cannot use.

    Attributes:
        argument: Name of the offending parameter.
        value: The rejected value.
    """

    def __init__(self, argument: str, value: object, reason: str) -> None:
        self.argument = argument
        self.value = value
        super().__init__(f"Invalid {argument} {value!r}: {reason}")


class SnapshotValidationError(CalendarError, ValueError):
    """Raised when a serialized calendar fails structural validation.

    Attributes:
        detail: Human-readable description of the first failing check.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Cannot parse calendar from provided data: {detail}")
