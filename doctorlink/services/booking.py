"""
Appointment booking service.

Handles the complete booking flow:
1. Validate the requested date and time are not in the past
2. Open a transaction and load the doctor's day schedule
3. Validate the requested time is a slot of the doctor's schedule grid
4. Validate the slot is still free
5. Create the appointment record in the same transaction
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import pendulum
from pendulum import DateTime

from ..adapters.appointment_repository import SqlAppointmentRepository
from ..adapters.database import Database
from ..adapters.schedule_repository import SqlScheduleRepository
from ..domain.exceptions import BookingError, InvalidSlotError, PastDateError, SlotUnavailableError
from ..domain.models import TimeOfDay
from ..domain.records import Appointment, AppointmentStatus
from ..domain.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


class BookingService:
    """
    Turns a chosen slot into a persisted appointment.
    """

    def __init__(
        self,
        database: Database,
        schedule_repository: SqlScheduleRepository,
        appointment_repository: SqlAppointmentRepository,
        slot_generator: Optional[SlotGenerator] = None,
        timezone: str = "Asia/Seoul",
    ) -> None:
        self._database = database
        self._schedule_repository = schedule_repository
        self._appointment_repository = appointment_repository
        self._slot_generator = slot_generator or SlotGenerator()
        self._timezone = timezone

    def book(
        self,
        *,
        patient_id: int,
        doctor_id: int,
        hospital_id: int,
        day: date,
        start_time: TimeOfDay,
        duration_minutes: Optional[int] = None,
        reason: Optional[str] = None,
        now: Optional[DateTime] = None,
    ) -> Appointment:
        """
        Book an appointment for a patient.

        Args:
            patient_id: The patient booking the appointment
            doctor_id: The doctor's ID
            hospital_id: The hospital's ID
            day: The desired date
            start_time: The desired start time; must match a generated slot
            duration_minutes: Slot length; the generator default when omitted
            reason: Optional reason for the visit
            now: Current time, defaults to now in the configured timezone

        Returns:
            The created appointment (status ``pending``)

        Raises:
            PastDateError: If the date or time has already passed
            InvalidSlotError: If the time is not a slot of the doctor's schedule
            SlotUnavailableError: If the slot is already taken
        """
        current = now or pendulum.now(self._timezone)
        today = current.date()

        # Basic date validation
        if day < today:
            raise PastDateError()
        if day == today and start_time <= TimeOfDay.from_time(current.time()):
            raise PastDateError("Cannot book a slot that has already passed today.")

        with self._database.transaction() as conn:
            schedule = self._schedule_repository.get_day_schedule(
                doctor_id, hospital_id, day, connection=conn, for_update=True
            )

            grid = self._slot_generator.generate_grid(schedule, duration_minutes)
            matching_slot = next((slot for slot in grid if slot.start == start_time), None)
            if matching_slot is None:
                raise InvalidSlotError()

            free_slots = self._slot_generator.generate(schedule, duration_minutes)
            if not any(slot.start == start_time for slot in free_slots):
                logger.warning(
                    "Slot %s on %s for doctor %s is already taken", start_time, day, doctor_id
                )
                raise SlotUnavailableError()

            appointment = self._appointment_repository.create(
                patient_id=patient_id,
                doctor_id=doctor_id,
                hospital_id=hospital_id,
                appointment_date=day,
                start_time=matching_slot.start,
                end_time=matching_slot.end,
                reason=reason,
                connection=conn,
            )

        return appointment

    def cancel(self, appointment_id: int, notes: Optional[str] = None) -> Appointment:
        """
        Cancel an appointment, freeing its slot.

        Raises:
            NotFoundError: If the appointment doesn't exist
            BookingError: If the appointment is already cancelled or completed
        """
        with self._database.transaction() as conn:
            appointment = self._appointment_repository.get(appointment_id, connection=conn)

            if appointment.status == AppointmentStatus.CANCELLED:
                raise BookingError(f"Appointment {appointment_id} is already cancelled.", code="already_cancelled")
            if appointment.status == AppointmentStatus.COMPLETED:
                raise BookingError(
                    f"Appointment {appointment_id} is completed and cannot be cancelled.",
                    code="invalid_status",
                )

            return self._appointment_repository.update_status(
                appointment_id, AppointmentStatus.CANCELLED, notes=notes, connection=conn
            )

    def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Set an appointment's status, e.g. when the clinic approves it."""
        return self._appointment_repository.update_status(appointment_id, status, notes=notes)
