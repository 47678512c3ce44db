# -*- coding: utf-8 -*-
"""
DateTime Utilities

Centralized datetime handling for the local store and the wire format.
Timestamps are persisted as ISO-8601 text; ledger stamps are always UTC.
"""

from datetime import datetime, date, timezone
from typing import Union, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_isoformat() -> str:
    """
    Get the current UTC time in ISO format.

    Used for the ledger's last_sync_at column.

    Examples:
        >>> utc_now_isoformat()
        '2024-01-15T10:30:00.123456+00:00'
    """
    return utc_now().isoformat()


def to_isoformat(value: Union[datetime, date, str, None]) -> Optional[str]:
    """
    Convert a datetime-like value to an ISO format string for storage.

    Args:
        value: datetime, date, ISO string, or None

    Returns:
        ISO format string, or None when value is None

    Examples:
        >>> to_isoformat(datetime(2024, 1, 15, 10, 30))
        '2024-01-15T10:30:00'
        >>> to_isoformat(date(2024, 1, 15))
        '2024-01-15'
        >>> to_isoformat(None) is None
        True
    """
    if value is None:
        return None

    if isinstance(value, str):
        return value

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    return str(value)


def from_isoformat(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Convert ISO format string to datetime object.

    Reverse of to_isoformat() for deserialization. Unparseable strings
    yield None rather than raising, since rows may predate a format change.

    Examples:
        >>> from_isoformat('2024-01-15T10:30:00')
        datetime.datetime(2024, 1, 15, 10, 30)
        >>> from_isoformat('2024-01-15')
        datetime.datetime(2024, 1, 15, 0, 0)
        >>> from_isoformat(None) is None
        True
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # Python < 3.11 does not accept a trailing Z
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if 'T' in text or ' ' in text:
                return datetime.fromisoformat(text)
            parsed_date = date.fromisoformat(text)
            return datetime.combine(parsed_date, datetime.min.time())
        except (ValueError, AttributeError):
            return None

    return None


def to_wire_instant(value: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime for the backend, which expects an ISO instant.

    Naive datetimes are local field-device times and are sent as UTC
    after conversion.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
