"""
Loading of the bundled sample data set into a database.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import insert

from ..domain.models import TimeOfDay, WorkingHours
from ..domain.records import AppointmentStatus, Doctor, Hospital, HospitalStatus
from .database import Database, appointments, doctor_schedules, doctor_time_off
from .hospital_repository import SqlHospitalRepository

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent.parent / "data" / "sample_data.json"


def load_fixture(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read a fixture file with hospitals, doctors, schedules, time off and appointments.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a JSON object
    """
    data_file = path or SAMPLE_DATA_FILE
    if not data_file.exists():
        raise FileNotFoundError(f"Fixture file not found: {data_file}")

    try:
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {data_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Fixture file must contain an object at the root level.")
    return data


def parse_working_hours(entry: Dict[str, Any]) -> WorkingHours:
    """Build validated working hours from a fixture schedule entry."""
    break_start = entry.get("break_start")
    break_end = entry.get("break_end")
    return WorkingHours(
        start_time=TimeOfDay.parse(entry["start_time"]),
        end_time=TimeOfDay.parse(entry["end_time"]),
        break_start=TimeOfDay.parse(break_start) if break_start else None,
        break_end=TimeOfDay.parse(break_end) if break_end else None,
    )


def seed_database(database: Database, data: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
    """
    Insert fixture data into an existing schema.

    Returns:
        Number of inserted rows per table
    """
    data = data if data is not None else load_fixture()
    hospital_repository = SqlHospitalRepository(database)
    counts = {"hospitals": 0, "doctors": 0, "schedules": 0, "time_off": 0, "appointments": 0}

    for entry in data.get("hospitals", []):
        hospital_repository.add(
            Hospital(
                id=entry.get("id"),
                name=entry["name"],
                address=entry["address"],
                city=entry["city"],
                hospital_type=entry.get("hospital_type"),
                departments=list(entry.get("departments", [])),
                phone=entry.get("phone"),
                description=entry.get("description"),
                latitude=entry.get("latitude"),
                longitude=entry.get("longitude"),
                rating=entry.get("rating", 0.0),
                review_count=entry.get("review_count", 0),
                status=HospitalStatus(entry.get("status", "active")),
            )
        )
        counts["hospitals"] += 1

    for entry in data.get("doctors", []):
        hospital_repository.add_doctor(
            Doctor(
                id=entry.get("id"),
                hospital_id=entry["hospital_id"],
                name=entry["name"],
                specialization=entry["specialization"],
                license_number=entry.get("license_number"),
                experience_years=entry.get("experience_years"),
                rating=entry.get("rating"),
                consultation_fee=entry.get("consultation_fee"),
            )
        )
        counts["doctors"] += 1

    with database.transaction() as conn:
        for entry in data.get("schedules", []):
            hours = parse_working_hours(entry)
            conn.execute(
                insert(doctor_schedules).values(
                    doctor_id=entry["doctor_id"],
                    hospital_id=entry["hospital_id"],
                    weekday=entry["weekday"],
                    start_time=hours.start_time.to_time(),
                    end_time=hours.end_time.to_time(),
                    break_start=hours.break_start.to_time() if hours.break_start else None,
                    break_end=hours.break_end.to_time() if hours.break_end else None,
                )
            )
            counts["schedules"] += 1

        for entry in data.get("time_off", []):
            conn.execute(
                insert(doctor_time_off).values(
                    doctor_id=entry["doctor_id"],
                    hospital_id=entry["hospital_id"],
                    off_date=date.fromisoformat(entry["date"]),
                    reason=entry.get("reason"),
                )
            )
            counts["time_off"] += 1

        for entry in data.get("appointments", []):
            values = {
                "patient_id": entry["patient_id"],
                "doctor_id": entry["doctor_id"],
                "hospital_id": entry["hospital_id"],
                "appointment_date": date.fromisoformat(entry["date"]),
                "start_time": TimeOfDay.parse(entry["start_time"]).to_time(),
                "end_time": TimeOfDay.parse(entry["end_time"]).to_time(),
                "status": AppointmentStatus(entry.get("status", "pending")).value,
                "reason": entry.get("reason"),
            }
            if "id" in entry:
                values["id"] = entry["id"]
            conn.execute(insert(appointments).values(**values))
            counts["appointments"] += 1

    logger.info("Seeded database: %s", counts)
    return counts
