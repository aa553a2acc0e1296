"""
Business records stored in the DoctorLink database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from .models import TimeOfDay, TimeRange

T = TypeVar("T")


class HospitalStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Hospital:
    id: Optional[int]
    name: str
    address: str
    city: str
    hospital_type: Optional[str] = None
    departments: List[str] = field(default_factory=list)
    phone: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: float = 0.0
    review_count: int = 0
    status: HospitalStatus = HospitalStatus.ACTIVE
    # Only set by distance-aware queries
    distance_km: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class Doctor:
    id: Optional[int]
    hospital_id: int
    name: str
    specialization: str
    license_number: Optional[str] = None
    experience_years: Optional[int] = None
    rating: Optional[float] = None
    consultation_fee: Optional[int] = None


@dataclass
class Appointment:
    id: Optional[int]
    patient_id: int
    doctor_id: int
    hospital_id: int
    appointment_date: date
    start_time: TimeOfDay
    end_time: TimeOfDay
    status: AppointmentStatus = AppointmentStatus.PENDING
    reason: Optional[str] = None
    notes: Optional[str] = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)


@dataclass
class Page(Generic[T]):
    """
    One page of query results plus pagination metadata.
    """
    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
