"""
Session core exceptions.

Each exception carries the HTTP status it maps to and a message that is
safe to show to the client. Ownership filtering of foreign ids is not part
of this hierarchy: those ids are dropped, never reported.
"""

from typing import Optional


class HostnoteError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(HostnoteError):
    """Request carried a malformed value (e.g. an unparseable datetime)."""

    status_code = 400
    error = "Validation error"


class AuthorizationError(HostnoteError):
    """Tenant identity missing, invalid, or inactive."""

    status_code = 401
    error = "Unauthorized"


class NotFoundError(HostnoteError):
    """Entity absent, soft-deleted, or owned by another tenant."""

    status_code = 404
    error = "Not found"


class PersistenceError(HostnoteError):
    """Database failure inside a write transaction; the transaction was rolled back."""

    status_code = 500
    error = "Persistence error"
