"""
Fixture-backed schedule repository for running without a database.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..domain.exceptions import InvalidArgumentError
from ..domain.models import BookedInterval, DaySchedule, TimeOfDay
from ..domain.records import AppointmentStatus
from .schedule_repository import DEFAULT_NON_BLOCKING_STATUSES
from .seed import load_fixture, parse_working_hours

logger = logging.getLogger(__name__)


class MockScheduleRepository:
    """
    Serves day schedules from the bundled sample data (or any fixture file).

    Useful for trying the CLI and for tests, without requiring a database.
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        data: Optional[Dict[str, Any]] = None,
        non_blocking_statuses: Iterable[AppointmentStatus] = DEFAULT_NON_BLOCKING_STATUSES,
    ):
        self._data = data if data is not None else load_fixture(data_file)
        self._non_blocking = {AppointmentStatus(s) for s in non_blocking_statuses}

    def get_day_schedule(self, doctor_id: int, hospital_id: int, day: date) -> DaySchedule:
        """Return the schedule for ``day`` from the fixture data."""
        working_hours = None
        for entry in self._data.get("schedules", []):
            if (
                entry.get("doctor_id") == doctor_id
                and entry.get("hospital_id") == hospital_id
                and entry.get("weekday") == day.weekday()
            ):
                working_hours = parse_working_hours(entry)
                break

        is_day_off = any(
            entry.get("doctor_id") == doctor_id
            and entry.get("hospital_id") == hospital_id
            and entry.get("date") == day.isoformat()
            for entry in self._data.get("time_off", [])
        )

        booked: List[BookedInterval] = []
        for entry in self._data.get("appointments", []):
            if (
                entry.get("doctor_id") != doctor_id
                or entry.get("hospital_id") != hospital_id
                or entry.get("date") != day.isoformat()
            ):
                continue

            if AppointmentStatus(entry.get("status", "pending")) in self._non_blocking:
                continue

            try:
                booked.append(
                    BookedInterval(
                        start=TimeOfDay.parse(entry["start_time"]),
                        end=TimeOfDay.parse(entry["end_time"]),
                        appointment_id=entry.get("id"),
                    )
                )
            except (KeyError, InvalidArgumentError) as exc:
                # Skip invalid entries
                logger.warning("Skipping malformed appointment entry %s: %s", entry.get("id"), exc)
                continue

        return DaySchedule(working_hours=working_hours, booked_intervals=booked, is_day_off=is_day_off)
