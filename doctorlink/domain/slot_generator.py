"""
Core business logic for generating bookable appointment slots.

Pure domain logic without any external dependencies (no database, no I/O).
"""

from typing import Iterable, List, Optional

from .exceptions import InvalidArgumentError
from .models import BookedInterval, CandidateSlot, DaySchedule, TimeRange, WorkingHours

DEFAULT_SLOT_DURATION_MINUTES = 30


def validate_duration(duration_minutes: int) -> int:
    """Ensure a slot duration is a positive whole number of minutes."""
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidArgumentError(f"Slot duration must be an integer, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidArgumentError(f"Slot duration must be greater than zero, got {duration_minutes}")
    return duration_minutes


def generate_slots(
    working_hours: Optional[WorkingHours],
    booked_intervals: Iterable[BookedInterval],
    duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES,
    is_day_off: bool = False,
) -> List[CandidateSlot]:
    """
    Slice a working day into fixed-size slots that avoid the break and bookings.

    Algorithm:
    1. Day off or no working hours -> no slots
    2. Walk a cursor from the start of the working window in steps of
       ``duration_minutes`` while a full slot still fits
    3. Drop candidates overlapping the break or any booked interval
    4. Return the remaining candidates in chronological order

    All intervals are half-open, so a slot ending exactly where a booking
    starts is still available. Trailing time shorter than one slot is dropped.

    Raises:
        InvalidArgumentError: If the duration is not a positive integer
    """
    validate_duration(duration_minutes)

    if is_day_off or working_hours is None:
        return []

    # Bookings may arrive as a one-shot iterator
    booked = list(booked_intervals)
    break_range = working_hours.break_range
    end = working_hours.end_time.minutes

    slots: List[CandidateSlot] = []
    cursor = working_hours.start_time

    while cursor.minutes + duration_minutes <= end:
        candidate = TimeRange(start=cursor, end=cursor.plus_minutes(duration_minutes))

        if break_range is not None and candidate.overlaps(break_range):
            cursor = candidate.end
            continue

        if any(candidate.overlaps(interval) for interval in booked):
            cursor = candidate.end
            continue

        slots.append(CandidateSlot(time_range=candidate, available=True))
        cursor = candidate.end

    return slots


class SlotGenerator:
    """
    Generates available appointment slots for a day schedule.

    Holds the default slot duration so services can be configured once and
    have the generator injected.
    """

    def __init__(self, default_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES):
        self.default_duration_minutes = validate_duration(default_duration_minutes)

    def generate(
        self,
        schedule: DaySchedule,
        duration_minutes: Optional[int] = None,
    ) -> List[CandidateSlot]:
        """Generate the free slots of ``schedule``."""
        duration = self.default_duration_minutes if duration_minutes is None else duration_minutes
        return generate_slots(
            working_hours=schedule.working_hours,
            booked_intervals=schedule.booked_intervals,
            duration_minutes=duration,
            is_day_off=schedule.is_day_off,
        )

    def generate_grid(
        self,
        schedule: DaySchedule,
        duration_minutes: Optional[int] = None,
    ) -> List[CandidateSlot]:
        """
        Generate the slots of ``schedule`` as if nothing were booked.

        Used to tell an off-grid time apart from a slot that is merely taken.
        """
        duration = self.default_duration_minutes if duration_minutes is None else duration_minutes
        return generate_slots(
            working_hours=schedule.working_hours,
            booked_intervals=[],
            duration_minutes=duration,
            is_day_off=schedule.is_day_off,
        )
