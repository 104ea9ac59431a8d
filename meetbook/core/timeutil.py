"""Canonical timestamp handling.

Every timestamp stored or returned by the service is a naive datetime in UTC.
Values carrying an offset are converted; naive values are taken as UTC.
"""

from datetime import datetime, timezone


def to_canonical(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
