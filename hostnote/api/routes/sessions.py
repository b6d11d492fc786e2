"""
Table Session Endpoints

CRUD over table sessions for the authenticated tenant. Writes go through
SessionStore, which owns the transaction; responses are hydrated views.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.api.middleware.auth import TenantContext, require_tenant
from hostnote.api.pagination import resolve_page
from hostnote.config import settings
from hostnote.core.sessions import SessionStore, SessionView, SessionWrite
from hostnote.infra.database import get_db

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_session_store(
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> SessionStore:
    return SessionStore(db, tenant.id)


@router.get(
    "",
    response_model=list[SessionView],
    summary="List table sessions",
)
async def list_sessions(
    limit: Optional[int] = Query(default=None),
    offset: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_session_store),
) -> list[SessionView]:
    """Newest first. Out-of-range paging values fall back to defaults."""
    limit, offset = resolve_page(
        limit, offset, settings.session_page_default, settings.session_page_max
    )
    return await store.list_recent(limit, offset)


@router.get(
    "/{session_id}",
    response_model=SessionView,
    summary="Get a table session",
)
async def get_session(
    session_id: int,
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return await store.get(session_id)


@router.post(
    "",
    response_model=SessionView,
    status_code=status.HTTP_201_CREATED,
    summary="Create a table session",
    description=(
        "Creates the session, links the patrons and staff that belong to the "
        "tenant, and records attendance for the session's day."
    ),
)
async def create_session(
    body: SessionWrite,
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return await store.create(body)


@router.put(
    "/{session_id}",
    response_model=SessionView,
    summary="Update a table session",
    description="Only the fields present in the body are changed.",
)
async def update_session(
    session_id: int,
    body: SessionWrite,
    store: SessionStore = Depends(get_session_store),
) -> SessionView:
    return await store.update(session_id, body)


@router.delete(
    "/{session_id}",
    summary="Delete a table session",
)
async def delete_session(
    session_id: int,
    store: SessionStore = Depends(get_session_store),
) -> dict:
    await store.delete(session_id)
    return {"message": "Deleted"}
