"""
Database handle and table definitions (SQLAlchemy Core).

The handle is constructed explicitly and passed to the repositories; it owns
one engine whose lifecycle is controlled with ``open()``/``close()`` or a
``with`` block.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import (
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..domain.exceptions import DataAccessError

logger = logging.getLogger(__name__)

metadata = MetaData()

hospitals = Table(
    "hospitals",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(200), nullable=False, index=True),
    Column("address", String(300), nullable=False),
    Column("city", String(100), nullable=False, index=True),
    Column("hospital_type", String(100)),
    # JSON array of department names
    Column("departments", Text, nullable=False, default="[]"),
    Column("phone", String(50)),
    Column("description", Text),
    Column("latitude", Float),
    Column("longitude", Float),
    Column("rating", Float, nullable=False, default=0.0),
    Column("review_count", Integer, nullable=False, default=0),
    Column("status", String(20), nullable=False, default="active", index=True),
)

doctors = Table(
    "doctors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hospital_id", Integer, ForeignKey("hospitals.id"), nullable=False, index=True),
    Column("name", String(100), nullable=False),
    Column("specialization", String(100), nullable=False),
    Column("license_number", String(50)),
    Column("experience_years", Integer),
    Column("rating", Float),
    Column("consultation_fee", Integer),
)

doctor_schedules = Table(
    "doctor_schedules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("doctor_id", Integer, ForeignKey("doctors.id"), nullable=False),
    Column("hospital_id", Integer, ForeignKey("hospitals.id"), nullable=False),
    Column("weekday", Integer, nullable=False),  # 0=Monday, 6=Sunday
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("break_start", Time),
    Column("break_end", Time),
    UniqueConstraint("doctor_id", "hospital_id", "weekday", name="uq_schedule_day"),
)

doctor_time_off = Table(
    "doctor_time_off",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("doctor_id", Integer, ForeignKey("doctors.id"), nullable=False),
    Column("hospital_id", Integer, ForeignKey("hospitals.id"), nullable=False),
    Column("off_date", Date, nullable=False, index=True),
    Column("reason", String(200)),
)

appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("doctor_id", Integer, ForeignKey("doctors.id"), nullable=False, index=True),
    Column("hospital_id", Integer, ForeignKey("hospitals.id"), nullable=False),
    Column("appointment_date", Date, nullable=False, index=True),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("status", String(20), nullable=False, default="pending"),
    Column("reason", Text),
    Column("notes", Text),
)


def _install_sqlite_begin_hooks(engine: Engine) -> None:
    """
    Emit BEGIN from SQLAlchemy instead of the pysqlite driver.

    Connections marked with ``begin_immediate`` start
    with ``BEGIN IMMEDIATE`` and hold the write lock from their first read.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(connection):
        if connection.get_execution_options().get("begin_immediate"):
            connection.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            connection.exec_driver_sql("BEGIN")


class Database:
    """
    Explicitly managed handle to the relational store.

    Example:
        with Database("sqlite:///doctorlink.db") as db:
            db.create_schema()
            repository = SqlScheduleRepository(db)
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Database":
        if self._engine is None:
            try:
                self._engine = create_engine(self.url, echo=self.echo)
            except SQLAlchemyError as exc:
                raise DataAccessError(f"Could not open database {self.url}: {exc}") from exc
            if self._engine.dialect.name == "sqlite":
                _install_sqlite_begin_hooks(self._engine)
            logger.debug("Opened database %s", self.url)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.debug("Closed database %s", self.url)

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DataAccessError("Database handle is not open")
        return self._engine

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise DataAccessError(f"Could not create schema: {exc}") from exc
        logger.info("Database schema ready")

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a read connection, wrapping driver errors."""
        try:
            with self.engine.connect() as connection:
                yield connection
        except SQLAlchemyError as exc:
            raise DataAccessError(f"Database query failed: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Yield a connection inside a transaction that commits on success.

        The write lock is taken when the transaction starts, so reads inside
        it see no concurrent writes.
        """
        try:
            with self.engine.connect() as connection:
                connection.execution_options(begin_immediate=True)
                with connection.begin():
                    yield connection
        except SQLAlchemyError as exc:
            raise DataAccessError(f"Database transaction failed: {exc}") from exc
