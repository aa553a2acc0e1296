"""
Hospital and doctor lookups with typed search filters.

Every supported predicate is a field of ``HospitalQuery``; statements are
built from SQLAlchemy expressions with bound parameters only.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import and_, func, insert, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from ..domain.exceptions import InvalidArgumentError, NotFoundError
from ..domain.geo import GeoPoint, bounding_box, haversine_km
from ..domain.records import Doctor, Hospital, HospitalStatus, Page
from .database import Database, doctors, hospitals

logger = logging.getLogger(__name__)


class HospitalSort(str, Enum):
    RATING = "rating"
    NAME = "name"
    DISTANCE = "distance"


@dataclass(frozen=True)
class HospitalQuery:
    """
    Filters for hospital search. ``None`` means "do not filter".
    """
    search_term: Optional[str] = None
    city: Optional[str] = None
    hospital_type: Optional[str] = None
    department: Optional[str] = None
    status: Optional[HospitalStatus] = HospitalStatus.ACTIVE
    near: Optional[GeoPoint] = None
    radius_km: float = 10.0
    sort: HospitalSort = HospitalSort.RATING

    def __post_init__(self):
        if self.radius_km <= 0:
            raise InvalidArgumentError(f"Radius must be greater than zero, got {self.radius_km}")
        if self.sort == HospitalSort.DISTANCE and self.near is None:
            raise InvalidArgumentError("Sorting by distance requires a location")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_departments(hospital_id: Optional[int], raw: Optional[str]) -> List[str]:
    try:
        departments = json.loads(raw or "[]")
    except json.JSONDecodeError as exc:
        logger.warning("Invalid departments for hospital %s: %s", hospital_id, exc)
        return []
    if not isinstance(departments, list):
        logger.warning("Invalid departments for hospital %s: expected a list", hospital_id)
        return []
    return [str(d) for d in departments]


def _row_to_hospital(row: Mapping[str, Any]) -> Hospital:
    departments = _parse_departments(row["id"], row["departments"])
    return Hospital(
        id=row["id"],
        name=row["name"],
        address=row["address"],
        city=row["city"],
        hospital_type=row["hospital_type"],
        departments=departments,
        phone=row["phone"],
        description=row["description"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        rating=row["rating"] or 0.0,
        review_count=row["review_count"] or 0,
        status=HospitalStatus(row["status"]),
    )


def _row_to_doctor(row: Mapping[str, Any]) -> Doctor:
    return Doctor(
        id=row["id"],
        hospital_id=row["hospital_id"],
        name=row["name"],
        specialization=row["specialization"],
        license_number=row["license_number"],
        experience_years=row["experience_years"],
        rating=row["rating"],
        consultation_fee=row["consultation_fee"],
    )


class SqlHospitalRepository:
    """
    Read and write access to hospitals and their doctors.
    """

    def __init__(self, database: Database):
        self._database = database

    def _build_conditions(self, query: HospitalQuery) -> List[ColumnElement[bool]]:
        conditions: List[ColumnElement[bool]] = []

        if query.status is not None:
            conditions.append(hospitals.c.status == HospitalStatus(query.status).value)

        if query.search_term:
            pattern = f"%{_escape_like(query.search_term.strip().lower())}%"
            conditions.append(
                or_(
                    func.lower(hospitals.c.name).like(pattern, escape="\\"),
                    func.lower(hospitals.c.address).like(pattern, escape="\\"),
                    func.lower(func.coalesce(hospitals.c.description, "")).like(pattern, escape="\\"),
                )
            )

        if query.city:
            conditions.append(func.lower(hospitals.c.city) == query.city.strip().lower())

        if query.hospital_type:
            conditions.append(func.lower(hospitals.c.hospital_type) == query.hospital_type.strip().lower())

        if query.department:
            # Match a whole element of the JSON array
            quoted = json.dumps(query.department.strip().lower(), ensure_ascii=False)
            pattern = f"%{_escape_like(quoted)}%"
            conditions.append(func.lower(hospitals.c.departments).like(pattern, escape="\\"))

        if query.near is not None:
            box = bounding_box(query.near, query.radius_km)
            conditions.extend(
                [
                    hospitals.c.latitude.is_not(None),
                    hospitals.c.longitude.is_not(None),
                    hospitals.c.latitude.between(box.min_latitude, box.max_latitude),
                    hospitals.c.longitude.between(box.min_longitude, box.max_longitude),
                ]
            )

        return conditions

    def search(self, query: HospitalQuery, page: int = 1, limit: int = 10) -> Page[Hospital]:
        """
        Search hospitals.

        Args:
            query: Filters and sort order
            page: 1-based page number
            limit: Page size

        Returns:
            One page of hospitals with pagination metadata
        """
        if page < 1:
            raise InvalidArgumentError(f"Page must be at least 1, got {page}")
        if limit < 1:
            raise InvalidArgumentError(f"Limit must be at least 1, got {limit}")

        conditions = self._build_conditions(query)
        offset = (page - 1) * limit

        if query.near is not None:
            return self._search_near(query, conditions, page, limit)

        stmt = select(hospitals).where(and_(true(), *conditions))
        if query.sort == HospitalSort.NAME:
            stmt = stmt.order_by(hospitals.c.name.asc(), hospitals.c.id.asc())
        else:
            stmt = stmt.order_by(
                hospitals.c.rating.desc(), hospitals.c.review_count.desc(), hospitals.c.id.asc()
            )

        count_stmt = select(func.count()).select_from(hospitals).where(and_(true(), *conditions))

        with self._database.connect() as conn:
            total = conn.execute(count_stmt).scalar_one()
            rows = conn.execute(stmt.limit(limit).offset(offset)).mappings().all()

        items = [_row_to_hospital(row) for row in rows]
        logger.debug("Hospital search matched %d rows (page %d)", total, page)
        return Page(items=items, page=page, limit=limit, total=total)

    def _search_near(
        self,
        query: HospitalQuery,
        conditions: List[ColumnElement[bool]],
        page: int,
        limit: int,
    ) -> Page[Hospital]:
        """
        Distance-aware search.

        The bounding box narrows rows in SQL; exact distances, the radius
        filter, ordering and pagination are applied here.
        """
        stmt = select(hospitals).where(and_(true(), *conditions))

        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        matches: List[Hospital] = []
        for row in rows:
            hospital = _row_to_hospital(row)
            distance = haversine_km(
                query.near.latitude, query.near.longitude, hospital.latitude, hospital.longitude
            )
            if distance <= query.radius_km:
                hospital.distance_km = round(distance, 3)
                matches.append(hospital)

        if query.sort == HospitalSort.DISTANCE:
            matches.sort(key=lambda h: (h.distance_km, h.id))
        elif query.sort == HospitalSort.NAME:
            matches.sort(key=lambda h: (h.name, h.id))
        else:
            matches.sort(key=lambda h: (-h.rating, -h.review_count, h.id))

        offset = (page - 1) * limit
        return Page(items=matches[offset:offset + limit], page=page, limit=limit, total=len(matches))

    def get(self, hospital_id: int) -> Hospital:
        stmt = select(hospitals).where(hospitals.c.id == hospital_id)
        with self._database.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            raise NotFoundError(f"Hospital {hospital_id} not found")
        return _row_to_hospital(row)

    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 10.0,
        limit: int = 10,
    ) -> List[Hospital]:
        """Active hospitals within ``radius_km``, closest first."""
        query = HospitalQuery(
            near=GeoPoint(latitude=latitude, longitude=longitude),
            radius_km=radius_km,
            sort=HospitalSort.DISTANCE,
        )
        return self.search(query, page=1, limit=limit).items

    def popular(self, limit: int = 10) -> List[Hospital]:
        """Active hospitals with the best rating and most reviews."""
        return self.search(HospitalQuery(sort=HospitalSort.RATING), page=1, limit=limit).items

    def department_counts(self) -> List[Tuple[str, int]]:
        """Number of active hospitals per department, most common first."""
        stmt = select(hospitals.c.id, hospitals.c.departments).where(
            hospitals.c.status == HospitalStatus.ACTIVE.value
        )
        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        counts: Counter = Counter()
        for row in rows:
            counts.update(set(_parse_departments(row["id"], row["departments"])))
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    def list_doctors(self, hospital_id: int, specialization: Optional[str] = None) -> List[Doctor]:
        stmt = select(doctors).where(doctors.c.hospital_id == hospital_id)
        if specialization:
            stmt = stmt.where(func.lower(doctors.c.specialization) == specialization.strip().lower())
        stmt = stmt.order_by(doctors.c.name.asc(), doctors.c.id.asc())

        with self._database.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_doctor(row) for row in rows]

    def add(self, hospital: Hospital) -> Hospital:
        values = {
            "name": hospital.name,
            "address": hospital.address,
            "city": hospital.city,
            "hospital_type": hospital.hospital_type,
            "departments": json.dumps(hospital.departments, ensure_ascii=False),
            "phone": hospital.phone,
            "description": hospital.description,
            "latitude": hospital.latitude,
            "longitude": hospital.longitude,
            "rating": hospital.rating,
            "review_count": hospital.review_count,
            "status": HospitalStatus(hospital.status).value,
        }
        if hospital.id is not None:
            values["id"] = hospital.id

        with self._database.transaction() as conn:
            result = conn.execute(insert(hospitals).values(**values))
            hospital.id = result.inserted_primary_key[0]
        return hospital

    def add_doctor(self, doctor: Doctor) -> Doctor:
        values = {
            "hospital_id": doctor.hospital_id,
            "name": doctor.name,
            "specialization": doctor.specialization,
            "license_number": doctor.license_number,
            "experience_years": doctor.experience_years,
            "rating": doctor.rating,
            "consultation_fee": doctor.consultation_fee,
        }
        if doctor.id is not None:
            values["id"] = doctor.id

        with self._database.transaction() as conn:
            result = conn.execute(insert(doctors).values(**values))
            doctor.id = result.inserted_primary_key[0]
        return doctor
