"""
Table Session Core

The session write path: base row persistence, ownership-filtered link
reconciliation, attendance derivation, and batched read hydration.

Usage:
    from hostnote.core.sessions import SessionStore, SessionWrite

    store = SessionStore(db, tenant_id)
    view = await store.create(SessionWrite.model_validate({
        "datetime": "2024-05-01T22:00:00+09:00",
        "himeIds": [7],
        "mainCastId": 3,
    }))
    print(view.hime_list)
"""

# Errors
from hostnote.core.sessions.errors import (
    HostnoteError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
)

# Types
from hostnote.core.sessions.types import (
    SalesInfo,
    OrderItem,
    SessionWrite,
    SessionView,
    PersonSummary,
    AttendanceView,
)

# Components
from hostnote.core.sessions.datetimes import (
    offset_minutes,
    parse_session_datetime,
    restore_offset,
    visit_day,
)
from hostnote.core.sessions.ownership import OwnershipValidator, normalize_ids
from hostnote.core.sessions.reconciler import (
    RelationReconciler,
    DesiredLinks,
    AppliedLinks,
)
from hostnote.core.sessions.attendance import AttendanceDeriver, AttendanceReader
from hostnote.core.sessions.hydration import SessionHydrator

# Orchestrator
from hostnote.core.sessions.store import SessionStore

__all__ = [
    # Errors
    "HostnoteError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "PersistenceError",
    # Types
    "SalesInfo",
    "OrderItem",
    "SessionWrite",
    "SessionView",
    "PersonSummary",
    "AttendanceView",
    # Components
    "parse_session_datetime",
    "visit_day",
    "offset_minutes",
    "restore_offset",
    "OwnershipValidator",
    "normalize_ids",
    "RelationReconciler",
    "DesiredLinks",
    "AppliedLinks",
    "AttendanceDeriver",
    "AttendanceReader",
    "SessionHydrator",
    # Orchestrator
    "SessionStore",
]
