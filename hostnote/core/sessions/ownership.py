"""
Ownership Validator

Decides whether a patron or staff id supplied by the client belongs to the
acting tenant. Results are filter signals only: a failing id is dropped by
the caller, never turned into an error.
"""

import logging
import uuid
from typing import Iterable, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.models.database import Patron, Staff

logger = logging.getLogger(__name__)

OwnedModel = Union[Type[Patron], Type[Staff]]

# Largest value an INTEGER primary key column holds
MAX_ID = 2**31 - 1


def is_storable_id(value: int) -> bool:
    """True when the id fits the integer key columns."""
    return 0 < value <= MAX_ID


def normalize_ids(raw: Iterable[object]) -> list[int]:
    """
    Keep the storable integer ids from a client list, first occurrence wins.

    Integral floats (JSON numbers like ``7.0``) are accepted; strings,
    booleans, ids outside 1..MAX_ID and anything else are skipped.
    """
    seen: set[int] = set()
    ids: list[int] = []
    for value in raw:
        if isinstance(value, bool):
            continue
        if isinstance(value, float):
            if not value.is_integer():
                continue
            value = int(value)
        if not isinstance(value, int) or not is_storable_id(value):
            continue
        if value not in seen:
            seen.add(value)
            ids.append(value)
    return ids


class OwnershipValidator:
    """Read-only ownership checks scoped to one tenant."""

    def __init__(self, db: AsyncSession, tenant_id: uuid.UUID):
        self.db = db
        self.tenant_id = tenant_id

    async def _owns(self, model: OwnedModel, entity_id: int) -> bool:
        result = await self.db.execute(
            select(model.id).where(
                model.tenant_id == self.tenant_id,
                model.id == entity_id,
                model.is_deleted == False,
            )
        )
        return result.scalar_one_or_none() is not None

    async def owns_patron(self, patron_id: int) -> bool:
        return await self._owns(Patron, patron_id)

    async def owns_staff(self, staff_id: int) -> bool:
        return await self._owns(Staff, staff_id)

    async def _accept(self, model: OwnedModel, ids: list[int]) -> list[int]:
        """Filter ids down to those owned by the tenant, preserving order."""
        if not ids:
            return []

        result = await self.db.execute(
            select(model.id).where(
                model.tenant_id == self.tenant_id,
                model.id.in_(ids),
                model.is_deleted == False,
            )
        )
        owned = set(result.scalars().all())
        accepted = [entity_id for entity_id in ids if entity_id in owned]

        dropped = len(ids) - len(accepted)
        if dropped:
            logger.debug(
                f"Ownership filter dropped {dropped} {model.__tablename__} id(s) "
                f"| Tenant: {self.tenant_id}"
            )
        return accepted

    async def accepted_patron_ids(self, ids: list[int]) -> list[int]:
        return await self._accept(Patron, ids)

    async def accepted_staff_ids(self, ids: list[int]) -> list[int]:
        return await self._accept(Staff, ids)
