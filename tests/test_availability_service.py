"""
Tests for the AvailabilityService orchestration layer.
"""

from datetime import date
from typing import Dict, List, Tuple

import pytest

from doctorlink.adapters.mock_schedule_repository import MockScheduleRepository
from doctorlink.domain.exceptions import InvalidArgumentError
from doctorlink.domain.models import BookedInterval, DaySchedule, TimeOfDay, WorkingHours
from doctorlink.domain.slot_generator import SlotGenerator
from doctorlink.services.availability import AvailabilityService


class StubScheduleRepository:
    """Minimal stub matching ScheduleRepositoryProtocol."""

    def __init__(self, schedules: Dict[Tuple[int, int, date], DaySchedule]):
        self._schedules = schedules
        self.calls: List[Tuple[int, int, date]] = []

    def get_day_schedule(self, doctor_id, hospital_id, day):
        self.calls.append((doctor_id, hospital_id, day))
        return self._schedules.get((doctor_id, hospital_id, day), DaySchedule(working_hours=None))


def t(value: str) -> TimeOfDay:
    return TimeOfDay.parse(value)


MONDAY = date(2026, 11, 2)


def _build_service(schedule: DaySchedule, slot_generator: SlotGenerator = None):
    repository = StubScheduleRepository({(1, 1, MONDAY): schedule})
    return AvailabilityService(repository, slot_generator=slot_generator), repository


def _morning(**kwargs) -> DaySchedule:
    return DaySchedule(working_hours=WorkingHours(start_time=t("09:00"), end_time=t("11:00")), **kwargs)


def test_find_available_slots_excludes_bookings():
    """Booked intervals from the repository are removed from the result."""
    service, repository = _build_service(
        _morning(booked_intervals=[BookedInterval(start=t("09:30"), end=t("10:00"), appointment_id=3)])
    )

    slots = service.find_available_slots(1, 1, MONDAY)

    assert [str(slot.start) for slot in slots] == ["09:00", "10:00", "10:30"]
    assert repository.calls == [(1, 1, MONDAY)]


def test_find_available_slots_uses_generator_default():
    service, _ = _build_service(_morning(), slot_generator=SlotGenerator(default_duration_minutes=60))

    slots = service.find_available_slots(1, 1, MONDAY)

    assert [slot.to_dict() for slot in slots] == [
        {"startTime": "09:00", "endTime": "10:00", "available": True},
        {"startTime": "10:00", "endTime": "11:00", "available": True},
    ]


def test_find_available_slots_with_explicit_duration():
    service, _ = _build_service(_morning())

    slots = service.find_available_slots(1, 1, MONDAY, duration_minutes=40)

    assert [str(slot.start) for slot in slots] == ["09:00", "09:40", "10:20"]


def test_day_off_returns_no_slots():
    service, _ = _build_service(_morning(is_day_off=True))

    assert service.find_available_slots(1, 1, MONDAY) == []


def test_unknown_doctor_returns_no_slots():
    """A doctor without working hours that day has nothing to offer."""
    service, repository = _build_service(_morning())

    assert service.find_available_slots(99, 1, MONDAY) == []
    assert repository.calls == [(99, 1, MONDAY)]


def test_invalid_duration_raises_error():
    service, _ = _build_service(_morning())

    with pytest.raises(InvalidArgumentError):
        service.find_available_slots(1, 1, MONDAY, duration_minutes=0)


def test_check_availability_returns_raw_schedule():
    schedule = _morning()
    service, _ = _build_service(schedule)

    assert service.check_availability(1, 1, MONDAY) is schedule


def test_service_with_mock_repository():
    """The fixture-backed repository plugs into the service unchanged."""
    service = AvailabilityService(MockScheduleRepository())

    slots = service.find_available_slots(1, 1, MONDAY)
    slot_starts = [str(slot.start) for slot in slots]

    # 09:30 approved and 14:00-15:00 pending block; the cancelled 16:00 booking doesn't
    assert "09:30" not in slot_starts
    assert "14:00" not in slot_starts and "14:30" not in slot_starts
    assert "16:00" in slot_starts
    assert "12:00" not in slot_starts and "12:30" not in slot_starts
    assert len(slots) == 13
