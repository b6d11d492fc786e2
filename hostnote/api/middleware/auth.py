"""
Tenant resolution from the X-API-Key header.

Keys are issued outside this service and stored only as SHA-256 hashes on
the tenant row. A resolved tenant is cached in Redis by key hash so most
requests skip the database lookup.
"""

import hashlib
import hmac
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.core.sessions.errors import AuthorizationError
from hostnote.infra.database import get_db
from hostnote.infra.redis import get_tenant_cache
from hostnote.models.database import Tenant, TenantStatus

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

API_KEY_PREFIXES = ("hn_live_", "hn_test_")


@dataclass(frozen=True)
class TenantContext:
    """The acting tenant for one request."""

    id: uuid.UUID
    slug: str
    status: str

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE.value

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantContext":
        return cls(id=tenant.id, slug=tenant.slug, status=tenant.status.value)

    def to_document(self) -> dict:
        return {**asdict(self), "id": str(self.id)}

    @classmethod
    def from_document(cls, document: dict) -> "TenantContext":
        return cls(id=uuid.UUID(document["id"]), slug=document["slug"], status=document["status"])


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()


def mask_api_key(api_key: str) -> str:
    """Loggable form of a key: prefix and last three characters."""
    if len(api_key) < 15:
        return "***"
    return f"{api_key[:11]}...{api_key[-3:]}"


async def lookup_tenant(key_hash: str, db: AsyncSession) -> Optional[TenantContext]:
    """Resolve a key hash to a tenant, cache first."""
    cache = await get_tenant_cache()

    document = await cache.get(key_hash)
    if document is not None:
        return TenantContext.from_document(document)

    result = await db.execute(
        select(Tenant).where(
            Tenant.api_key_hash == key_hash,
            Tenant.is_deleted == False,
        )
    )
    tenant = result.scalar_one_or_none()
    if tenant is None or not hmac.compare_digest(tenant.api_key_hash, key_hash):
        return None

    context = TenantContext.from_tenant(tenant)
    await cache.put(key_hash, context.to_document())
    return context


async def require_tenant(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
    db: AsyncSession = Depends(get_db),
) -> TenantContext:
    """
    Dependency for every tenant-scoped route.

    Raises:
        AuthorizationError: key missing, malformed, unknown, or tenant not active
    """
    if not api_key:
        raise AuthorizationError("API key required")

    if not api_key.startswith(API_KEY_PREFIXES):
        logger.warning(f"Auth failed: bad key format | Key: {mask_api_key(api_key)}")
        raise AuthorizationError("Invalid API key format")

    context = await lookup_tenant(hash_api_key(api_key), db)
    if context is None:
        logger.warning(f"Auth failed: unknown key | Key: {mask_api_key(api_key)}")
        raise AuthorizationError("Invalid API key")

    if not context.is_active:
        logger.warning(f"Auth failed: tenant {context.status} | Tenant: {context.slug}")
        raise AuthorizationError(f"Tenant is {context.status}")

    request.state.tenant = context
    return context
