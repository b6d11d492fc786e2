"""
Attendance Deriver

Ensures one attendance record per (tenant, patron, calendar day) for the
patrons linked to a newly created session. Existing records are left
untouched so hand-edited notes survive.

The day is taken from the session datetime in its own offset, so a
22:00+09:00 session counts for that local day, not the UTC one.

Deduplication is backed by the uq_attendance_tenant_patron_day constraint.
Rows are inserted with ON CONFLICT DO NOTHING where the dialect supports
it, which turns a concurrent duplicate into a skip instead of an error.

AttendanceReader serves the read side of the attendance API.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.core.sessions.datetimes import visit_day
from hostnote.core.sessions.errors import NotFoundError
from hostnote.core.sessions.ownership import is_storable_id
from hostnote.core.sessions.types import AttendanceView, PersonSummary
from hostnote.models.database import AttendanceRecord, Patron

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = ["tenant_id", "patron_id", "visit_date"]


class AttendanceDeriver:
    """Derives attendance records from a session's accepted patron ids."""

    def __init__(self, db: AsyncSession, tenant_id: uuid.UUID):
        self.db = db
        self.tenant_id = tenant_id

    async def _existing_patron_ids(self, day: date, patron_ids: list[int]) -> set[int]:
        result = await self.db.execute(
            select(AttendanceRecord.patron_id).where(
                AttendanceRecord.tenant_id == self.tenant_id,
                AttendanceRecord.visit_date == day,
                AttendanceRecord.patron_id.in_(patron_ids),
            )
        )
        return set(result.scalars().all())

    def _insert_statement(self, values: dict):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return (
                postgresql.insert(AttendanceRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=_CONFLICT_COLUMNS)
                .returning(AttendanceRecord.id)
            )
        if dialect == "sqlite":
            return (
                sqlite.insert(AttendanceRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=_CONFLICT_COLUMNS)
                .returning(AttendanceRecord.id)
            )
        # Other backends rely on the existence check in derive()
        return insert(AttendanceRecord).values(**values)

    async def derive(self, seated_at: datetime, patron_ids: list[int]) -> list[int]:
        """
        Insert missing attendance records for the session's day.

        Args:
            seated_at: Session datetime (timezone-aware)
            patron_ids: Patron ids that already passed the ownership filter

        Returns:
            Ids of the patrons that received a new record
        """
        if not patron_ids:
            return []

        day = visit_day(seated_at)
        existing = await self._existing_patron_ids(day, patron_ids)

        created: list[int] = []
        for patron_id in patron_ids:
            if patron_id in existing:
                continue

            result = await self.db.execute(
                self._insert_statement({
                    "tenant_id": self.tenant_id,
                    "patron_id": patron_id,
                    "visit_date": day,
                })
            )
            if result.returns_rows and result.scalar_one_or_none() is None:
                logger.debug(
                    f"Attendance recorded concurrently, skipping | Tenant: {self.tenant_id} | "
                    f"Patron: {patron_id} | Day: {day}"
                )
                continue
            created.append(patron_id)

        logger.debug(
            f"Attendance derived | Tenant: {self.tenant_id} | Day: {day} | "
            f"Created: {created} | Already present: {len(patron_ids) - len(created)}"
        )
        return created


class AttendanceReader:
    """Tenant-scoped reads of attendance records."""

    def __init__(self, db: AsyncSession, tenant_id: uuid.UUID):
        self.db = db
        self.tenant_id = tenant_id

    async def _views(self, records: Sequence[AttendanceRecord]) -> list[AttendanceView]:
        patron_ids = {record.patron_id for record in records}
        patrons: dict[int, PersonSummary] = {}
        if patron_ids:
            result = await self.db.execute(
                select(Patron.id, Patron.name, Patron.photo_url).where(
                    Patron.tenant_id == self.tenant_id,
                    Patron.id.in_(patron_ids),
                    Patron.is_deleted == False,
                )
            )
            patrons = {
                row.id: PersonSummary(id=row.id, name=row.name, photo_url=row.photo_url)
                for row in result
            }

        return [
            AttendanceView(
                id=record.id,
                patron_id=record.patron_id,
                visit_date=record.visit_date,
                note=record.note,
                created_at=record.created_at,
                updated_at=record.updated_at,
                patron=patrons.get(record.patron_id),
            )
            for record in records
        ]

    async def list_recent(
        self,
        limit: int,
        offset: int = 0,
        patron_id: Optional[int] = None,
    ) -> list[AttendanceView]:
        """Most recent visit days first, optionally for a single patron."""
        if patron_id is not None and not is_storable_id(patron_id):
            return []

        query = select(AttendanceRecord).where(AttendanceRecord.tenant_id == self.tenant_id)
        if patron_id is not None:
            query = query.where(AttendanceRecord.patron_id == patron_id)

        result = await self.db.execute(
            query
            .order_by(AttendanceRecord.visit_date.desc(), AttendanceRecord.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return await self._views(result.scalars().all())

    async def get(self, record_id: int) -> AttendanceView:
        record = None
        if is_storable_id(record_id):
            result = await self.db.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.tenant_id == self.tenant_id,
                    AttendanceRecord.id == record_id,
                )
            )
            record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Attendance record not found")
        return (await self._views([record]))[0]
