"""
Relation Reconciler

Replaces a session's patron and staff link rows with a desired set.
Existing rows are deleted and one row is inserted per id that passes the
ownership filter, so applying the same desired set twice leaves the same
rows behind. Database errors propagate to the caller's transaction.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.core.sessions.ownership import OwnershipValidator, normalize_ids
from hostnote.core.sessions.types import SessionWrite
from hostnote.models.database import PatronLink, StaffLink, StaffRole

logger = logging.getLogger(__name__)


@dataclass
class DesiredLinks:
    """Link set a request asks for, before ownership filtering."""

    patron_ids: list[int] = field(default_factory=list)
    primary_staff_id: Optional[int] = None
    support_staff_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_request(cls, body: SessionWrite) -> "DesiredLinks":
        """Build from a request body; absent or non-positive ids mean "none"."""
        primary = normalize_ids([body.main_cast_id]) if body.main_cast_id is not None else []
        return cls(
            patron_ids=normalize_ids(body.hime_ids or []),
            primary_staff_id=primary[0] if primary else None,
            support_staff_ids=normalize_ids(body.help_cast_ids or []),
        )


@dataclass
class AppliedLinks:
    """Links actually written after filtering."""

    patron_ids: list[int] = field(default_factory=list)
    primary_staff_id: Optional[int] = None
    support_staff_ids: list[int] = field(default_factory=list)


class RelationReconciler:
    """Full-replace writer for session link rows."""

    def __init__(self, db: AsyncSession, validator: OwnershipValidator):
        self.db = db
        self.validator = validator

    async def replace_patron_links(self, session_id: int, patron_ids: list[int]) -> list[int]:
        """Replace patron links; returns the accepted patron ids."""
        accepted = await self.validator.accepted_patron_ids(patron_ids)

        await self.db.execute(delete(PatronLink).where(PatronLink.session_id == session_id))
        self.db.add_all(
            PatronLink(session_id=session_id, patron_id=patron_id)
            for patron_id in accepted
        )
        await self.db.flush()
        return accepted

    async def replace_staff_links(
        self,
        session_id: int,
        primary_staff_id: Optional[int],
        support_staff_ids: list[int],
    ) -> tuple[Optional[int], list[int]]:
        """
        Replace staff links.

        A primary id that fails the ownership filter leaves the session
        without a primary link.

        Returns:
            (accepted primary id or None, accepted support ids)
        """
        primary: Optional[int] = None
        if primary_staff_id is not None and await self.validator.owns_staff(primary_staff_id):
            primary = primary_staff_id
        support = await self.validator.accepted_staff_ids(support_staff_ids)

        await self.db.execute(delete(StaffLink).where(StaffLink.session_id == session_id))
        if primary is not None:
            self.db.add(StaffLink(session_id=session_id, staff_id=primary, role=StaffRole.PRIMARY))
        self.db.add_all(
            StaffLink(session_id=session_id, staff_id=staff_id, role=StaffRole.SUPPORT)
            for staff_id in support
        )
        await self.db.flush()
        return primary, support

    async def reconcile(
        self,
        session_id: int,
        desired: DesiredLinks,
        *,
        patrons: bool = True,
        staff: bool = True,
    ) -> AppliedLinks:
        """
        Replace the selected link groups of a session.

        Args:
            session_id: Session whose links are replaced
            desired: Requested link set
            patrons: Replace patron links
            staff: Replace staff links (primary and support together)

        Returns:
            AppliedLinks; groups that were not replaced are left empty
        """
        applied = AppliedLinks()

        if patrons:
            applied.patron_ids = await self.replace_patron_links(session_id, desired.patron_ids)
        if staff:
            applied.primary_staff_id, applied.support_staff_ids = await self.replace_staff_links(
                session_id,
                desired.primary_staff_id,
                desired.support_staff_ids,
            )

        logger.debug(
            f"Links reconciled | Session: {session_id} | "
            f"Patrons: {applied.patron_ids if patrons else 'unchanged'} | "
            f"Primary: {applied.primary_staff_id} | Support: {applied.support_staff_ids}"
        )
        return applied
