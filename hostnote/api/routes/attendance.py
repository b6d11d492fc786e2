"""Attendance Endpoints (read only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hostnote.api.middleware.auth import TenantContext, require_tenant
from hostnote.api.pagination import resolve_page
from hostnote.config import settings
from hostnote.core.sessions import AttendanceReader, AttendanceView
from hostnote.infra.database import get_db

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def get_attendance_reader(
    tenant: TenantContext = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
) -> AttendanceReader:
    return AttendanceReader(db, tenant.id)


@router.get("", response_model=list[AttendanceView], summary="List attendance records")
async def list_attendance(
    patron_id: Optional[int] = Query(default=None, alias="patronId"),
    limit: Optional[int] = Query(default=None),
    offset: Optional[int] = Query(default=None),
    reader: AttendanceReader = Depends(get_attendance_reader),
) -> list[AttendanceView]:
    limit, offset = resolve_page(
        limit, offset, settings.attendance_page_default, settings.attendance_page_max
    )
    return await reader.list_recent(limit, offset, patron_id=patron_id)


@router.get("/{record_id}", response_model=AttendanceView, summary="Get an attendance record")
async def get_attendance(
    record_id: int,
    reader: AttendanceReader = Depends(get_attendance_reader),
) -> AttendanceView:
    return await reader.get(record_id)
