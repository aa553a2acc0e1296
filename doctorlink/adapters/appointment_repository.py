"""
Persistence of appointments.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from ..domain.exceptions import NotFoundError
from ..domain.models import TimeOfDay
from ..domain.records import Appointment, AppointmentStatus
from .database import Database, appointments

logger = logging.getLogger(__name__)


def _row_to_appointment(row: Mapping[str, Any]) -> Appointment:
    return Appointment(
        id=row["id"],
        patient_id=row["patient_id"],
        doctor_id=row["doctor_id"],
        hospital_id=row["hospital_id"],
        appointment_date=row["appointment_date"],
        start_time=TimeOfDay.from_time(row["start_time"]),
        end_time=TimeOfDay.from_time(row["end_time"]),
        status=AppointmentStatus(row["status"]),
        reason=row["reason"],
        notes=row["notes"],
    )


class SqlAppointmentRepository:
    """
    Create, list and update appointments.

    Methods accept an optional ``connection`` so the booking service can run
    the availability re-check and the insert in one transaction.
    """

    def __init__(self, database: Database):
        self._database = database

    @contextmanager
    def _write(self, connection: Optional[Connection]) -> Iterator[Connection]:
        if connection is not None:
            yield connection
        else:
            with self._database.transaction() as conn:
                yield conn

    def create(
        self,
        *,
        patient_id: int,
        doctor_id: int,
        hospital_id: int,
        appointment_date: date,
        start_time: TimeOfDay,
        end_time: TimeOfDay,
        reason: Optional[str] = None,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        connection: Optional[Connection] = None,
    ) -> Appointment:
        values = {
            "patient_id": patient_id,
            "doctor_id": doctor_id,
            "hospital_id": hospital_id,
            "appointment_date": appointment_date,
            "start_time": start_time.to_time(),
            "end_time": end_time.to_time(),
            "status": AppointmentStatus(status).value,
            "reason": reason,
        }

        with self._write(connection) as conn:
            result = conn.execute(insert(appointments).values(**values))
            appointment_id = result.inserted_primary_key[0]

        logger.info(
            "Created appointment %s for patient %s with doctor %s on %s %s",
            appointment_id, patient_id, doctor_id, appointment_date, start_time,
        )
        return Appointment(
            id=appointment_id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            hospital_id=hospital_id,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus(status),
            reason=reason,
        )

    def get(self, appointment_id: int, connection: Optional[Connection] = None) -> Appointment:
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        if connection is not None:
            row = connection.execute(stmt).mappings().first()
        else:
            with self._database.connect() as conn:
                row = conn.execute(stmt).mappings().first()

        if row is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return _row_to_appointment(row)

    def list_for_patient(
        self,
        patient_id: int,
        include_past: bool = False,
        today: Optional[date] = None,
    ) -> List[Appointment]:
        """
        List a patient's appointments in chronological order.

        Past appointments are left out unless ``include_past`` is set.
        """
        stmt = select(appointments).where(appointments.c.patient_id == patient_id)
        if not include_past:
            stmt = stmt.where(appointments.c.appointment_date >= (today or date.today()))
        stmt = stmt.order_by(appointments.c.appointment_date, appointments.c.start_time)

        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_appointment(row) for row in rows]

    def list_for_doctor(
        self,
        doctor_id: int,
        start_date: date,
        end_date: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        stmt = select(appointments).where(
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_date >= start_date,
        )
        if end_date is not None:
            stmt = stmt.where(appointments.c.appointment_date <= end_date)
        if status is not None:
            stmt = stmt.where(appointments.c.status == AppointmentStatus(status).value)
        stmt = stmt.order_by(appointments.c.appointment_date, appointments.c.start_time)

        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_appointment(row) for row in rows]

    def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
        notes: Optional[str] = None,
        connection: Optional[Connection] = None,
    ) -> Appointment:
        values: dict = {"status": AppointmentStatus(status).value}
        if notes is not None:
            values["notes"] = notes

        with self._write(connection) as conn:
            result = conn.execute(
                update(appointments).where(appointments.c.id == appointment_id).values(**values)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Appointment {appointment_id} not found")
            updated = self.get(appointment_id, connection=conn)

        logger.info("Appointment %s is now %s", appointment_id, updated.status.value)
        return updated
