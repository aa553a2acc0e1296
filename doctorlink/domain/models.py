"""
Domain models for time-of-day arithmetic and appointment slots.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import time
from typing import List, Optional

from .exceptions import InvalidArgumentError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A wall-clock time without any date component.

    Stored as minutes since midnight. ``24:00`` (1440) is allowed so a
    schedule can run until the end of the day.
    """
    minutes: int

    def __post_init__(self):
        if isinstance(self.minutes, bool) or not isinstance(self.minutes, int):
            raise InvalidArgumentError(f"Minutes must be an integer, got {self.minutes!r}")
        if not 0 <= self.minutes <= MINUTES_PER_DAY:
            raise InvalidArgumentError(
                f"Time of day must be between 00:00 and 24:00, got {self.minutes} minutes"
            )

    @classmethod
    def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
        if not 0 <= minute <= 59:
            raise InvalidArgumentError(f"Minute must be between 0 and 59, got {minute}")
        return cls(hour * 60 + minute)

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse an ``HH:MM`` string."""
        match = _TIME_PATTERN.match(value.strip())
        if not match:
            raise InvalidArgumentError(f"Invalid time '{value}', expected HH:MM")
        return cls.of(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_time(cls, value: time) -> "TimeOfDay":
        # Seconds are truncated; the scheduling grid is minute based.
        return cls.of(value.hour, value.minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def to_time(self) -> time:
        if self.minutes == MINUTES_PER_DAY:
            raise InvalidArgumentError("24:00 cannot be represented as datetime.time")
        return time(hour=self.hour, minute=self.minute)

    def plus_minutes(self, minutes: int) -> "TimeOfDay":
        return TimeOfDay(self.minutes + minutes)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidArgumentError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end.minutes - self.start.minutes

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies entirely within this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class BookedInterval(TimeRange):
    """An existing appointment occupying ``[start, end)`` on the target date."""
    appointment_id: Optional[int] = None


@dataclass(frozen=True)
class WorkingHours:
    """
    A practitioner's working window for one day at one facility.

    The break is optional, but ``break_start`` and ``break_end`` must be
    given together and lie inside the working window.
    """
    start_time: TimeOfDay
    end_time: TimeOfDay
    break_start: Optional[TimeOfDay] = None
    break_end: Optional[TimeOfDay] = None

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise InvalidArgumentError(
                f"Working hours start {self.start_time} must be before end {self.end_time}"
            )

        if (self.break_start is None) != (self.break_end is None):
            raise InvalidArgumentError("break_start and break_end must both be set or both be empty")

        if self.break_start is not None and self.break_end is not None:
            if self.break_end <= self.break_start:
                raise InvalidArgumentError(
                    f"Break end {self.break_end} must be after break start {self.break_start}"
                )
            if self.break_start < self.start_time or self.break_end > self.end_time:
                raise InvalidArgumentError(
                    f"Break {self.break_start} - {self.break_end} lies outside working hours "
                    f"{self.start_time} - {self.end_time}"
                )

    @property
    def window(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    @property
    def break_range(self) -> TimeRange | None:
        if self.break_start is None or self.break_end is None:
            return None
        return TimeRange(start=self.break_start, end=self.break_end)


@dataclass(frozen=True)
class CandidateSlot:
    """
    A generated, bookable appointment slot.
    """
    time_range: TimeRange
    available: bool = True

    @property
    def start(self) -> TimeOfDay:
        return self.time_range.start

    @property
    def end(self) -> TimeOfDay:
        return self.time_range.end

    def to_dict(self) -> dict:
        """Serialize to the JSON shape returned to clients."""
        return {
            "startTime": str(self.start),
            "endTime": str(self.end),
            "available": self.available,
        }

    def format_display(self) -> str:
        return f"{self.start} – {self.end} ({self.time_range.duration_minutes()} min)"


@dataclass
class DaySchedule:
    """
    Everything the slot generator needs for one doctor, hospital and date.
    """
    working_hours: Optional[WorkingHours]
    booked_intervals: List[BookedInterval] = field(default_factory=list)
    is_day_off: bool = False
