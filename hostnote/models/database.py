"""
Database Models

SQLAlchemy ORM models for the hostnote multi-tenant venue backend.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, Uuid, Enum as SQLEnum, func
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False
    )


class SoftDeleteMixin:
    """Mixin that adds soft delete functionality."""

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.deleted_at = _utcnow()


class TenantStatus(str, Enum):
    """Tenant status enumeration."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class StaffRole(str, Enum):
    """Role a staff member plays at a session."""
    PRIMARY = "primary"
    SUPPORT = "support"


class Tenant(Base, TimestampMixin, SoftDeleteMixin):
    """
    Tenant model.

    Every patron, staff member, session and attendance record belongs to
    exactly one tenant. Tenants authenticate with an API key whose SHA-256
    hash is stored here.
    """

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    api_key_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[TenantStatus] = mapped_column(
        SQLEnum(TenantStatus),
        default=TenantStatus.ACTIVE
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name='{self.name}', status={self.status.value})>"


class Patron(Base, TimestampMixin, SoftDeleteMixin):
    """
    Patron model.

    Only the identity and display fields the session core reads are
    mapped here; the full profile is managed by the patron CRUD service.
    """

    __tablename__ = "patrons"
    __table_args__ = (
        Index("idx_patron_tenant", "tenant_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Patron(id={self.id}, name='{self.name}')>"


class Staff(Base, TimestampMixin, SoftDeleteMixin):
    """Staff model (hosts working the floor)."""

    __tablename__ = "staff"
    __table_args__ = (
        Index("idx_staff_tenant", "tenant_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, name='{self.name}')>"


class TableSession(Base, TimestampMixin, SoftDeleteMixin):
    """
    Table session model.

    A recorded seating at the venue. Patron and staff associations live in
    the link tables and are always replaced as a whole. Soft-deleting a
    session leaves its link rows in place.
    """

    __tablename__ = "table_sessions"
    __table_args__ = (
        Index("idx_table_session_tenant_datetime", "tenant_id", "datetime"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False
    )
    seated_at: Mapped[datetime] = mapped_column(
        "datetime",
        DateTime(timezone=True),
        nullable=False
    )
    utc_offset_minutes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        doc="Offset the client sent with the datetime; seated_at itself is UTC"
    )
    table_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sales_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<TableSession(id={self.id}, tenant_id={self.tenant_id}, "
            f"seated_at={self.seated_at})>"
        )


class PatronLink(Base):
    """Presence-only association between a session and a patron."""

    __tablename__ = "session_patrons"
    __table_args__ = (
        Index("idx_session_patron_session", "session_id"),
        Index("idx_session_patron_patron", "patron_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("table_sessions.id", ondelete="CASCADE"),
        nullable=False
    )
    patron_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patrons.id", ondelete="CASCADE"),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<PatronLink(session_id={self.session_id}, patron_id={self.patron_id})>"


class StaffLink(Base):
    """
    Association between a session and a staff member.

    At most one PRIMARY link per session is intended; storage does not
    enforce it and readers take the first one.
    """

    __tablename__ = "session_staff"
    __table_args__ = (
        Index("idx_session_staff_session", "session_id"),
        Index("idx_session_staff_staff", "staff_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("table_sessions.id", ondelete="CASCADE"),
        nullable=False
    )
    staff_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=False
    )
    role: Mapped[StaffRole] = mapped_column(SQLEnum(StaffRole), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<StaffLink(session_id={self.session_id}, staff_id={self.staff_id}, "
            f"role={self.role.value})>"
        )


class AttendanceRecord(Base, TimestampMixin):
    """
    Attendance record.

    One row per (tenant, patron, calendar day). Rows are derived when a
    session is created and are never rewritten by that flow, so notes
    edited by hand survive. Removing a record is a hard delete, so a later
    session on the same day derives it again.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "patron_id", "visit_date",
            name="uq_attendance_tenant_patron_day",
        ),
        Index("idx_attendance_tenant_patron", "tenant_id", "patron_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False
    )
    patron_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patrons.id", ondelete="CASCADE"),
        nullable=False
    )
    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecord(id={self.id}, patron_id={self.patron_id}, "
            f"visit_date={self.visit_date})>"
        )
