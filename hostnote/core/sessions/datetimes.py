"""
Datetime parsing and calendar-day bucketing for table sessions.

Sessions are stored as a UTC instant plus the offset the client sent, so
reads return the same wall-clock value that was written and ordering
follows the instant.
"""

from datetime import date, datetime, timedelta, timezone

from hostnote.core.sessions.errors import ValidationError

# Tried in order, first match wins.
ACCEPTED_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",      # 2024-05-01T22:00:00+09:00, 2024-05-01T13:00:00Z
    "%Y-%m-%dT%H:%M:%S.%f%z",   # same with fractional seconds
    "%Y-%m-%dT%H:%M:%S",        # no offset
    "%Y-%m-%dT%H:%M",           # datetime-local input
    "%Y-%m-%dT%H:%M%z",         # minute precision with offset
)


def parse_session_datetime(value: object) -> datetime:
    """
    Parse a client-supplied session datetime.

    Offset-less values are taken as UTC. The returned datetime is always
    timezone-aware and keeps the offset the client sent.

    Raises:
        ValidationError: value is not a string or matches no accepted format
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Invalid datetime format")

    text = value.strip()
    for fmt in ACCEPTED_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise ValidationError("Invalid datetime format")


def visit_day(moment: datetime) -> date:
    """Calendar day of a session, evaluated in the session's own offset."""
    return moment.date()



def offset_minutes(moment: datetime) -> int:
    """UTC offset of an aware datetime in whole minutes."""
    return int(moment.utcoffset().total_seconds() // 60)


def restore_offset(stored: datetime, minutes: int) -> datetime:
    """
    Rebuild the client's wall-clock datetime from a stored UTC instant.

    Backends without timezone support hand the instant back naive; it is
    read as UTC.
    """
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=timezone.utc)
    return stored.astimezone(timezone(timedelta(minutes=minutes)))
