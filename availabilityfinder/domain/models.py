"""
Domain models for availability rules and date ranges.
"""

from dataclasses import dataclass, field, replace
from datetime import date, time
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Tuple, Union

from pendulum import DateTime

from .exceptions import (
    InvalidRangeError,
    InvalidRuleError,
    InvalidTimeOfDayError,
    InvalidWindowError,
)

WEEKDAY_NAMES = {
    0: "Sonntag",
    1: "Montag",
    2: "Dienstag",
    3: "Mittwoch",
    4: "Donnerstag",
    5: "Freitag",
    6: "Samstag",
}


def weekday_of(dt: Union[date, DateTime]) -> int:
    """Return the weekday ordinal of ``dt`` with 0=Sunday .. 6=Saturday."""
    return dt.isoweekday() % 7


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    Wall-clock time without a date or timezone.

    Invariant: 0 <= hour <= 23 and 0 <= minute <= 59.
    """
    hour: int
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise InvalidTimeOfDayError(f"Hour must be between 0 and 23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise InvalidTimeOfDayError(f"Minute must be between 0 and 59, got {self.minute}")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """
        Parse a ``HH:MM`` string.

        Raises:
            InvalidTimeOfDayError: If the string is not of the form HH:MM
                or a component is out of range
        """
        parts = value.strip().split(":")
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise InvalidTimeOfDayError(f"Expected a time as HH:MM, got '{value}'")
        return cls(hour=int(parts[0]), minute=int(parts[1]))

    @classmethod
    def from_time(cls, value: time) -> "TimeOfDay":
        return cls(hour=value.hour, minute=value.minute)

    @property
    def is_end_of_day(self) -> bool:
        """23:59 stands in for 24:00 on date overrides."""
        return self.hour == 23 and self.minute == 59

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class DateRange:
    """
    Represents an immutable range between two instants.

    Invariant: start must not be after end. A range with start == end is
    degenerate and only marks a cancelled day while merging.

    ``meta`` carries caller-supplied key/value pairs that survive
    subtraction. It is not part of equality.
    """
    start: DateTime
    end: DateTime
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRangeError(f"Start time {self.start} must not be after end time {self.end}")
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @property
    def is_degenerate(self) -> bool:
        return self.start == self.end

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "DateRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def with_meta(self, **values: Any) -> "DateRange":
        """Return a copy with ``values`` merged into the metadata."""
        return replace(self, meta={**self.meta, **values})

    def format_display(self) -> str:
        """
        Format the range for display.
        Format: Wochentag, DD.MM.YYYY | HH:MM – HH:MM Uhr (N Min.)
        """
        weekday = WEEKDAY_NAMES[weekday_of(self.start)]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr"
        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes()} Min.)"

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


def _weekday_set(days) -> FrozenSet[int]:
    weekdays = frozenset(days)
    invalid = sorted(day for day in weekdays if day not in range(7))
    if invalid:
        raise InvalidRuleError(f"Weekdays must be between 0 (Sunday) and 6 (Saturday), got {invalid}")
    return weekdays


@dataclass(frozen=True)
class WorkingHoursRule:
    """Recurring weekly availability: the same hours on every listed weekday."""
    days: FrozenSet[int]
    start_time: TimeOfDay
    end_time: TimeOfDay

    def __post_init__(self):
        object.__setattr__(self, "days", _weekday_set(self.days))
        if self.end_time < self.start_time:
            raise InvalidRuleError(f"Working hours end {self.end_time} is before start {self.start_time}")


@dataclass(frozen=True)
class DateOverrideRule:
    """
    Replaces every recurring rule on one calendar date.

    An end time of 23:59 means "until midnight"; equal start and end
    times cancel the day.
    """
    date: date
    start_time: TimeOfDay
    end_time: TimeOfDay

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise InvalidRuleError(f"Override end {self.end_time} is before start {self.start_time} on {self.date}")


AvailabilityRule = Union[WorkingHoursRule, DateOverrideRule]


@dataclass(frozen=True)
class ParticipantAvailability:
    """A participant's rule set in their own timezone."""
    email: str
    timezone: str
    rules: Tuple[AvailabilityRule, ...] = ()


def ensure_window(date_from: DateTime, date_to: DateTime) -> None:
    """
    Reject a query window that starts after it ends.

    Raises:
        InvalidWindowError: If date_from is after date_to
    """
    if date_from > date_to:
        raise InvalidWindowError(f"Window start {date_from} must not be after window end {date_to}")
