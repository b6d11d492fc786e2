"""
Session Store

Owns the table session entity and runs each write as a single
transaction:

    create: base row -> link reconciliation -> attendance derivation
    update: sparse base-row update -> link reconciliation (sent groups only)
    delete: soft delete, link rows kept

A failure at any step rolls the whole transaction back. Reads happen
after the commit and outside any write transaction.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.core.sessions.attendance import AttendanceDeriver
from hostnote.core.sessions.datetimes import offset_minutes, parse_session_datetime
from hostnote.core.sessions.errors import NotFoundError, PersistenceError
from hostnote.core.sessions.hydration import SessionHydrator
from hostnote.core.sessions.ownership import OwnershipValidator, is_storable_id
from hostnote.core.sessions.reconciler import DesiredLinks, RelationReconciler
from hostnote.core.sessions.types import SalesInfo, SessionView, SessionWrite
from hostnote.models.database import TableSession

logger = logging.getLogger(__name__)


def _clean_text(value: Optional[str]) -> Optional[str]:
    """Empty strings are stored as NULL."""
    if value is None or value == "":
        return None
    return value


def _sales_document(value: Optional[SalesInfo]) -> Optional[dict]:
    return value.to_document() if value is not None else None


def _place(record: TableSession, moment: datetime) -> None:
    """Store the instant in UTC and remember the client's offset."""
    record.seated_at = moment.astimezone(timezone.utc)
    record.utc_offset_minutes = offset_minutes(moment)


class SessionStore:
    """Tenant-scoped reads and writes of table sessions."""

    def __init__(self, db: AsyncSession, tenant_id: uuid.UUID):
        self.db = db
        self.tenant_id = tenant_id
        self.validator = OwnershipValidator(db, tenant_id)
        self.reconciler = RelationReconciler(db, self.validator)
        self.deriver = AttendanceDeriver(db, tenant_id)
        self.hydrator = SessionHydrator(db, tenant_id)

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncGenerator[None, None]:
        """Commit on success; roll back and wrap database errors."""
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Session {action} failed | Tenant: {self.tenant_id}")
            raise PersistenceError(f"Failed to {action} session") from e
        except Exception:
            await self.db.rollback()
            raise

    async def _load(self, session_id: int) -> TableSession:
        if not is_storable_id(session_id):
            raise NotFoundError("Table session not found")

        result = await self.db.execute(
            select(TableSession).where(
                TableSession.tenant_id == self.tenant_id,
                TableSession.id == session_id,
                TableSession.is_deleted == False,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Table session not found")
        return record

    async def create(self, body: SessionWrite) -> SessionView:
        """
        Create a session with its links and derived attendance.

        Raises:
            ValidationError: datetime missing or unparseable
            PersistenceError: database failure (nothing is written)
        """
        seated_at = parse_session_datetime(body.seated_at)
        desired = DesiredLinks.from_request(body)

        record = TableSession(
            tenant_id=self.tenant_id,
            table_number=_clean_text(body.table_number),
            memo=_clean_text(body.memo),
            sales_info=_sales_document(body.sales_info),
        )
        _place(record, seated_at)

        async with self._transaction("create"):
            self.db.add(record)
            await self.db.flush()

            applied = await self.reconciler.reconcile(record.id, desired)
            created = await self.deriver.derive(seated_at, applied.patron_ids)

        logger.info(
            f"Table session created | Tenant: {self.tenant_id} | Session: {record.id} | "
            f"Patrons: {len(applied.patron_ids)} | Attendance created: {len(created)}"
        )
        return await self.hydrator.hydrate_one(record)

    async def update(self, session_id: int, body: SessionWrite) -> SessionView:
        """
        Sparse update: only fields present in the body are written.

        Patron links are replaced only when ``himeIds`` is sent; staff links
        only when ``mainCastId`` or ``helpCastIds`` is sent. Attendance is
        never derived on update.

        Raises:
            NotFoundError: session absent, deleted, or foreign
            ValidationError: non-empty datetime that does not parse
            PersistenceError: database failure (nothing is written)
        """
        record = await self._load(session_id)

        # A null or empty datetime leaves the stored one in place
        seated_at = (
            parse_session_datetime(body.seated_at)
            if body.is_set("seated_at") and body.seated_at not in (None, "") else None
        )

        async with self._transaction("update"):
            if seated_at is not None:
                _place(record, seated_at)
            if body.is_set("table_number"):
                record.table_number = _clean_text(body.table_number)
            if body.is_set("memo"):
                record.memo = _clean_text(body.memo)
            if body.is_set("sales_info"):
                record.sales_info = _sales_document(body.sales_info)
            record.updated_at = datetime.now(timezone.utc)
            await self.db.flush()

            if body.touches_patrons or body.touches_staff:
                await self.reconciler.reconcile(
                    record.id,
                    DesiredLinks.from_request(body),
                    patrons=body.touches_patrons,
                    staff=body.touches_staff,
                )

        logger.info(f"Table session updated | Tenant: {self.tenant_id} | Session: {record.id}")
        return await self.hydrator.hydrate_one(record)

    async def delete(self, session_id: int) -> None:
        """Soft-delete a session. Link rows and attendance records stay."""
        record = await self._load(session_id)

        async with self._transaction("delete"):
            record.soft_delete()

        logger.info(f"Table session deleted | Tenant: {self.tenant_id} | Session: {session_id}")

    async def get(self, session_id: int) -> SessionView:
        record = await self._load(session_id)
        return await self.hydrator.hydrate_one(record)

    async def list_recent(self, limit: int, offset: int = 0) -> list[SessionView]:
        """Newest sessions first, hydrated in one batch."""
        result = await self.db.execute(
            select(TableSession)
            .where(
                TableSession.tenant_id == self.tenant_id,
                TableSession.is_deleted == False,
            )
            .order_by(TableSession.seated_at.desc(), TableSession.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return await self.hydrator.hydrate(result.scalars().all())
