"""
SQL-backed lookup of working hours, time off and bookings for one day.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, time
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import and_, exists, select
from sqlalchemy.engine import Connection

from ..domain.exceptions import InvalidArgumentError
from ..domain.models import BookedInterval, DaySchedule, TimeOfDay, WorkingHours
from ..domain.records import AppointmentStatus
from .database import Database, appointments, doctor_schedules, doctor_time_off

logger = logging.getLogger(__name__)

DEFAULT_NON_BLOCKING_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED)


def _optional_time(value: Optional[time]) -> Optional[TimeOfDay]:
    return TimeOfDay.from_time(value) if value is not None else None


class SqlScheduleRepository:
    """
    Resolves the ``DaySchedule`` of a doctor at a hospital on a date.

    Bookings in a non-blocking status (cancelled, rejected by default) are
    not returned, so their slots become available again.
    """

    def __init__(
        self,
        database: Database,
        non_blocking_statuses: Iterable[AppointmentStatus] = DEFAULT_NON_BLOCKING_STATUSES,
    ):
        self._database = database
        self._non_blocking = [AppointmentStatus(s).value for s in non_blocking_statuses]

    @contextmanager
    def _connection(self, connection: Optional[Connection]) -> Iterator[Connection]:
        if connection is not None:
            yield connection
        else:
            with self._database.connect() as conn:
                yield conn

    def get_day_schedule(
        self,
        doctor_id: int,
        hospital_id: int,
        day: date,
        connection: Optional[Connection] = None,
        for_update: bool = False,
    ) -> DaySchedule:
        """
        Load working hours, time off flag and active bookings.

        Args:
            doctor_id: Doctor identifier
            hospital_id: Hospital identifier
            day: Target calendar date
            connection: Optional connection to reuse an open transaction
            for_update: Lock the schedule row until the transaction ends

        Raises:
            InvalidArgumentError: If the stored working hours are inconsistent
            DataAccessError: If the database query fails
        """
        with self._connection(connection) as conn:
            working_hours = self._load_working_hours(conn, doctor_id, hospital_id, day, for_update)
            is_day_off = self._load_day_off(conn, doctor_id, hospital_id, day)
            booked = self._load_booked_intervals(conn, doctor_id, hospital_id, day)

        logger.debug(
            "Schedule for doctor %s at hospital %s on %s: hours=%s, day_off=%s, bookings=%d",
            doctor_id, hospital_id, day, working_hours, is_day_off, len(booked),
        )
        return DaySchedule(working_hours=working_hours, booked_intervals=booked, is_day_off=is_day_off)

    def _load_working_hours(
        self, conn: Connection, doctor_id: int, hospital_id: int, day: date, for_update: bool = False
    ) -> WorkingHours | None:
        stmt = select(doctor_schedules).where(
            and_(
                doctor_schedules.c.doctor_id == doctor_id,
                doctor_schedules.c.hospital_id == hospital_id,
                doctor_schedules.c.weekday == day.weekday(),
            )
        )
        if for_update:
            stmt = stmt.with_for_update()
        row = conn.execute(stmt).mappings().first()
        if row is None:
            return None

        try:
            return WorkingHours(
                start_time=TimeOfDay.from_time(row["start_time"]),
                end_time=TimeOfDay.from_time(row["end_time"]),
                break_start=_optional_time(row["break_start"]),
                break_end=_optional_time(row["break_end"]),
            )
        except InvalidArgumentError as exc:
            raise InvalidArgumentError(
                f"Invalid schedule {row['id']} for doctor {doctor_id}: {exc}"
            ) from exc

    def _load_day_off(self, conn: Connection, doctor_id: int, hospital_id: int, day: date) -> bool:
        stmt = select(
            exists().where(
                and_(
                    doctor_time_off.c.doctor_id == doctor_id,
                    doctor_time_off.c.hospital_id == hospital_id,
                    doctor_time_off.c.off_date == day,
                )
            )
        )
        return bool(conn.execute(stmt).scalar())

    def _load_booked_intervals(
        self, conn: Connection, doctor_id: int, hospital_id: int, day: date
    ) -> List[BookedInterval]:
        stmt = (
            select(appointments.c.id, appointments.c.start_time, appointments.c.end_time)
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.hospital_id == hospital_id,
                    appointments.c.appointment_date == day,
                    appointments.c.status.not_in(self._non_blocking),
                )
            )
            .order_by(appointments.c.start_time)
        )

        booked: List[BookedInterval] = []
        for row in conn.execute(stmt).mappings():
            try:
                booked.append(
                    BookedInterval(
                        start=TimeOfDay.from_time(row["start_time"]),
                        end=TimeOfDay.from_time(row["end_time"]),
                        appointment_id=row["id"],
                    )
                )
            except InvalidArgumentError as exc:
                logger.warning("Skipping malformed appointment %s: %s", row["id"], exc)
                continue

        return booked
