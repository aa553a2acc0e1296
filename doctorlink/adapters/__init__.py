"""
Adapters layer - Database access and fixture data.
"""

from .appointment_repository import SqlAppointmentRepository
from .database import Database
from .hospital_repository import HospitalQuery, HospitalSort, SqlHospitalRepository
from .mock_schedule_repository import MockScheduleRepository
from .schedule_repository import SqlScheduleRepository

__all__ = [
    "Database",
    "HospitalQuery",
    "HospitalSort",
    "MockScheduleRepository",
    "SqlAppointmentRepository",
    "SqlHospitalRepository",
    "SqlScheduleRepository",
]
