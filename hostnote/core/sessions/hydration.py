"""
Read Hydration

Attaches patron and staff summaries to a page of session rows. Lookups are
batched over the whole page: one query per link table and one per
referenced entity table, regardless of page size. Every entity lookup is
scoped to the tenant, so links pointing at ids the tenant cannot see are
left out of the output.
"""

import uuid
from collections import defaultdict
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.core.sessions.datetimes import restore_offset
from hostnote.core.sessions.types import PersonSummary, SalesInfo, SessionView
from hostnote.models.database import (
    Patron,
    PatronLink,
    Staff,
    StaffLink,
    StaffRole,
    TableSession,
)


class SessionHydrator:
    """Builds SessionView objects for one tenant."""

    def __init__(self, db: AsyncSession, tenant_id: uuid.UUID):
        self.db = db
        self.tenant_id = tenant_id

    async def _summaries(self, model, ids: set[int]) -> dict[int, PersonSummary]:
        if not ids:
            return {}

        result = await self.db.execute(
            select(model.id, model.name, model.photo_url).where(
                model.tenant_id == self.tenant_id,
                model.id.in_(ids),
                model.is_deleted == False,
            )
        )
        return {
            row.id: PersonSummary(id=row.id, name=row.name, photo_url=row.photo_url)
            for row in result
        }

    async def hydrate(self, sessions: Sequence[TableSession]) -> list[SessionView]:
        """Return views in the same order as the given rows."""
        if not sessions:
            return []

        session_ids = [s.id for s in sessions]

        patron_rows = (
            await self.db.execute(
                select(PatronLink.session_id, PatronLink.patron_id)
                .where(PatronLink.session_id.in_(session_ids))
                .order_by(PatronLink.id)
            )
        ).all()
        staff_rows = (
            await self.db.execute(
                select(StaffLink.session_id, StaffLink.staff_id, StaffLink.role)
                .where(StaffLink.session_id.in_(session_ids))
                .order_by(StaffLink.id)
            )
        ).all()

        patrons = await self._summaries(Patron, {row.patron_id for row in patron_rows})
        staff = await self._summaries(Staff, {row.staff_id for row in staff_rows})

        patron_links: dict[int, list[int]] = defaultdict(list)
        for row in patron_rows:
            patron_links[row.session_id].append(row.patron_id)

        staff_links: dict[int, list[tuple[int, StaffRole]]] = defaultdict(list)
        for row in staff_rows:
            staff_links[row.session_id].append((row.staff_id, row.role))

        views = []
        for record in sessions:
            main_cast: Optional[PersonSummary] = None
            help_casts: list[PersonSummary] = []
            for staff_id, role in staff_links.get(record.id, []):
                summary = staff.get(staff_id)
                if summary is None:
                    continue
                if role == StaffRole.PRIMARY:
                    # First visible primary wins
                    if main_cast is None:
                        main_cast = summary
                else:
                    help_casts.append(summary)

            views.append(SessionView(
                id=record.id,
                seated_at=restore_offset(record.seated_at, record.utc_offset_minutes),
                table_number=record.table_number,
                memo=record.memo,
                sales_info=(
                    SalesInfo.model_validate(record.sales_info)
                    if record.sales_info is not None else None
                ),
                created_at=record.created_at,
                updated_at=record.updated_at,
                hime_list=[
                    patrons[patron_id]
                    for patron_id in patron_links.get(record.id, [])
                    if patron_id in patrons
                ],
                main_cast=main_cast,
                help_casts=help_casts,
            ))

        return views

    async def hydrate_one(self, record: TableSession) -> SessionView:
        return (await self.hydrate([record]))[0]
