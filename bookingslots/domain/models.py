"""
Domain models for business hours, appointments and computed slots.
"""

import re
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import ConfigError

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

DEFAULT_OPEN = "09:00"
DEFAULT_CLOSE = "19:00"


def parse_time_of_day(value: Optional[str], field_name: str = "time") -> time:
    """
    Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a ``time``.

    Raises:
        ConfigError: If the value is missing or not a valid time of day
    """
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be an HH:MM string, got {value!r}")

    match = _TIME_OF_DAY.match(value.strip())
    if not match:
        raise ConfigError(f"{field_name} is not a valid HH:MM time: {value!r}")

    hour, minute, second = (int(part or 0) for part in match.groups())
    if hour > 23 or minute > 59 or second > 59:
        raise ConfigError(f"{field_name} is out of range: {value!r}")

    return time(hour=hour, minute=minute, second=second)


def day_of_week(day: date) -> int:
    """Weekday index used by business-hours rules (0=Sunday, 6=Saturday)."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this range overlaps with another.

        Ranges that only touch (one ends exactly where the other starts)
        do not overlap.
        """
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if ``other`` lies completely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WeeklyHourRule:
    """
    Opening hours for one weekday, optionally with a single break.

    Times are kept as strings exactly as configured; they are only parsed
    when the rule is applied to a concrete date, so a malformed value
    disables that weekday instead of the whole week.
    """
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str = DEFAULT_OPEN
    end_time: str = DEFAULT_CLOSE
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    is_active: bool = False

    @property
    def has_break(self) -> bool:
        return self.break_start is not None or self.break_end is not None

    def opening_hours(self, day: date, timezone: str) -> TimeRange:
        """
        Get the opening hours of this rule on a specific date.

        Raises:
            ConfigError: If a time is malformed or closing is not after opening
        """
        start = _at(day, parse_time_of_day(self.start_time, "start_time"), timezone)
        end = _at(day, parse_time_of_day(self.end_time, "end_time"), timezone)

        if start >= end:
            raise ConfigError(
                f"start_time {self.start_time} must be before end_time {self.end_time} "
                f"(day_of_week={self.day_of_week})"
            )

        return TimeRange(start=start, end=end)

    def break_window(self, day: date, timezone: str) -> TimeRange | None:
        """
        Get the break of this rule on a specific date, if one is configured.

        Raises:
            ConfigError: If only one break field is set, a time is malformed,
                or the break does not fit inside the opening hours
        """
        if not self.has_break:
            return None

        if self.break_start is None or self.break_end is None:
            raise ConfigError(
                f"break_start and break_end must be set together "
                f"(day_of_week={self.day_of_week})"
            )

        opening = self.opening_hours(day, timezone)
        start = _at(day, parse_time_of_day(self.break_start, "break_start"), timezone)
        end = _at(day, parse_time_of_day(self.break_end, "break_end"), timezone)

        if not (opening.start <= start < end <= opening.end):
            raise ConfigError(
                f"Break {self.break_start}-{self.break_end} must lie within "
                f"{self.start_time}-{self.end_time} (day_of_week={self.day_of_week})"
            )

        return TimeRange(start=start, end=end)


def _at(day: date, moment: time, timezone: str) -> DateTime:
    return pendulum.datetime(
        day.year, day.month, day.day,
        moment.hour, moment.minute, moment.second,
        tz=timezone
    )


def resolve_week(rules: Iterable[WeeklyHourRule]) -> Dict[int, WeeklyHourRule]:
    """
    Build a full week of rules, one per weekday.

    Weekdays without a configured rule get a closed default rule.

    Raises:
        ConfigError: If a weekday is out of range or configured twice
    """
    week: Dict[int, WeeklyHourRule] = {}

    for rule in rules:
        if rule.day_of_week not in range(7):
            raise ConfigError(f"day_of_week must be between 0 and 6, got {rule.day_of_week}")
        if rule.day_of_week in week:
            raise ConfigError(f"Duplicate business-hours rule for day_of_week={rule.day_of_week}")
        week[rule.day_of_week] = rule

    for weekday in range(7):
        week.setdefault(weekday, WeeklyHourRule(day_of_week=weekday))

    return dict(sorted(week.items()))


@dataclass(frozen=True)
class BlockedDate:
    """A calendar date on which nothing can be booked."""
    date: date
    reason: Optional[str] = None


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Appointment:
    """
    An existing booking.

    Only confirmed appointments block time.
    """
    start_time: DateTime
    end_time: DateTime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Appointment start {self.start_time} must be before end {self.end_time}"
            )

    @property
    def is_confirmed(self) -> bool:
        return self.status == AppointmentStatus.CONFIRMED

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)


def confirmed_only(appointments: Iterable[Appointment]) -> List[Appointment]:
    """Drop every appointment that does not block time."""
    return [appointment for appointment in appointments if appointment.is_confirmed]


@dataclass(frozen=True)
class DaySlots:
    """
    Bookable start times of one day, split for display.
    """
    morning: Tuple[DateTime, ...] = ()
    afternoon: Tuple[DateTime, ...] = ()

    def all(self) -> List[DateTime]:
        """All slot starts in ascending order."""
        return [*self.morning, *self.afternoon]

    @property
    def is_empty(self) -> bool:
        return not self.morning and not self.afternoon

    def to_dict(self, duration_minutes: int) -> Dict[str, List[Dict[str, str]]]:
        """
        Serialise the slots, adding the end time of each one.
        """
        def _serialise(starts: Tuple[DateTime, ...]) -> List[Dict[str, str]]:
            return [
                {
                    "start": start.to_iso8601_string(),
                    "end": start.add(minutes=duration_minutes).to_iso8601_string(),
                }
                for start in starts
            ]

        return {
            "morning": _serialise(self.morning),
            "afternoon": _serialise(self.afternoon),
        }


class DayStatus(str, Enum):
    OPEN = "open"
    FULL = "full"
    BLOCKED = "blocked"
    CLOSED = "closed"
    MISCONFIGURED = "misconfigured"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class DayAvailability:
    """
    Outcome of an availability query for one date.

    ``reason`` carries the blocked-date reason or the configuration error
    message when there is one.
    """
    date: date
    status: DayStatus
    slots: DaySlots = field(default_factory=DaySlots)
    reason: Optional[str] = None

    @property
    def is_bookable(self) -> bool:
        return self.status == DayStatus.OPEN


@dataclass(frozen=True)
class DayOverview:
    """A single entry of the day picker."""
    date: date
    status: DayStatus
    reason: Optional[str] = None

    @property
    def is_disabled(self) -> bool:
        return self.status in (DayStatus.BLOCKED, DayStatus.CLOSED, DayStatus.OUT_OF_RANGE)
