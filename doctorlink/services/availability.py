"""
Application service for looking up a doctor's free appointment slots.

The service fetches the day schedule through a repository and delegates the
slot computation to the domain-level ``SlotGenerator``. The repository is a
simple protocol, so the SQL adapter, the fixture-backed mock or a test stub
can be plugged in.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Protocol

from ..domain.models import CandidateSlot, DaySchedule
from ..domain.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


class ScheduleRepositoryProtocol(Protocol):
    """Protocol describing the schedule lookup needed by the service."""

    def get_day_schedule(self, doctor_id: int, hospital_id: int, day: date) -> DaySchedule:
        """Return working hours, day-off flag and bookings for one day."""


class AvailabilityService:
    """
    Orchestrates schedule retrieval and slot generation.
    """

    def __init__(
        self,
        schedule_repository: ScheduleRepositoryProtocol,
        slot_generator: Optional[SlotGenerator] = None,
    ) -> None:
        self._schedule_repository = schedule_repository
        self._slot_generator = slot_generator or SlotGenerator()

    @property
    def slot_generator(self) -> SlotGenerator:
        return self._slot_generator

    def check_availability(self, doctor_id: int, hospital_id: int, day: date) -> DaySchedule:
        """Fetch the raw schedule data for a doctor at a hospital on ``day``."""
        return self._schedule_repository.get_day_schedule(doctor_id, hospital_id, day)

    def find_available_slots(
        self,
        doctor_id: int,
        hospital_id: int,
        day: date,
        duration_minutes: Optional[int] = None,
    ) -> List[CandidateSlot]:
        """
        Retrieve the day schedule and compute the free slots.

        Args:
            doctor_id: Doctor identifier
            hospital_id: Hospital identifier
            day: Target date
            duration_minutes: Slot length; the generator default when omitted

        Returns:
            Available slots in chronological order (empty on a day off or
            when the doctor has no schedule that weekday)
        """
        schedule = self.check_availability(doctor_id, hospital_id, day)
        slots = self._slot_generator.generate(schedule, duration_minutes)

        logger.info(
            "Found %d free slots for doctor %s at hospital %s on %s",
            len(slots), doctor_id, hospital_id, day,
        )
        return slots
