"""
Tests for the fixture-backed schedule repository.
"""

import logging
from datetime import date

import pytest

from doctorlink.adapters.mock_schedule_repository import MockScheduleRepository
from doctorlink.domain.exceptions import InvalidArgumentError
from doctorlink.domain.records import AppointmentStatus

MONDAY = date(2026, 11, 2)


def _data(**overrides):
    data = {
        "schedules": [
            {"doctor_id": 7, "hospital_id": 1, "weekday": 0, "start_time": "09:00", "end_time": "12:00"},
        ],
        "time_off": [],
        "appointments": [],
    }
    data.update(overrides)
    return data


def test_bundled_sample_data():
    """The default fixture is the bundled sample data set."""
    schedule = MockScheduleRepository().get_day_schedule(1, 1, MONDAY)

    assert str(schedule.working_hours.break_range) == "12:00 - 13:00"
    assert [b.appointment_id for b in schedule.booked_intervals] == [1, 2]


def test_schedule_matched_by_weekday():
    repository = MockScheduleRepository(data=_data())

    assert repository.get_day_schedule(7, 1, MONDAY).working_hours is not None
    assert repository.get_day_schedule(7, 1, date(2026, 11, 3)).working_hours is None
    assert repository.get_day_schedule(7, 2, MONDAY).working_hours is None


def test_time_off():
    repository = MockScheduleRepository(
        data=_data(time_off=[{"doctor_id": 7, "hospital_id": 1, "date": "2026-11-02"}])
    )

    assert repository.get_day_schedule(7, 1, MONDAY).is_day_off
    assert not repository.get_day_schedule(7, 1, date(2026, 11, 9)).is_day_off


def test_non_blocking_statuses():
    appointments = [
        {"id": 1, "doctor_id": 7, "hospital_id": 1, "date": "2026-11-02", "start_time": "09:00",
         "end_time": "09:30", "status": "rejected"},
        {"id": 2, "doctor_id": 7, "hospital_id": 1, "date": "2026-11-02", "start_time": "10:00",
         "end_time": "10:30"},
    ]

    default = MockScheduleRepository(data=_data(appointments=appointments))
    strict = MockScheduleRepository(
        data=_data(appointments=appointments), non_blocking_statuses=[AppointmentStatus.CANCELLED]
    )

    assert [b.appointment_id for b in default.get_day_schedule(7, 1, MONDAY).booked_intervals] == [2]
    assert [b.appointment_id for b in strict.get_day_schedule(7, 1, MONDAY).booked_intervals] == [1, 2]


def test_malformed_appointment_is_skipped(caplog):
    appointments = [
        {"id": 1, "doctor_id": 7, "hospital_id": 1, "date": "2026-11-02", "start_time": "10:30",
         "end_time": "10:00"},
        {"id": 2, "doctor_id": 7, "hospital_id": 1, "date": "2026-11-02", "start_time": "11:00"},
    ]
    caplog.set_level(logging.WARNING)

    schedule = MockScheduleRepository(data=_data(appointments=appointments)).get_day_schedule(7, 1, MONDAY)

    assert schedule.booked_intervals == []
    assert "Skipping malformed appointment entry 1" in caplog.text
    assert "Skipping malformed appointment entry 2" in caplog.text


def test_inconsistent_schedule_raises_error():
    data = _data(
        schedules=[{"doctor_id": 7, "hospital_id": 1, "weekday": 0, "start_time": "12:00", "end_time": "09:00"}]
    )

    with pytest.raises(InvalidArgumentError):
        MockScheduleRepository(data=data).get_day_schedule(7, 1, MONDAY)


def test_missing_data_file_raises_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        MockScheduleRepository(data_file=tmp_path / "missing.json")
