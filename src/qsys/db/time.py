# src/qsys/db/time.py
"""Time utilities for database models and day partitioning."""

import re
from datetime import UTC, date, datetime, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from qsys.core.errors import InvalidInputError
from qsys.core.settings import settings

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores that drop offsets."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@lru_cache(maxsize=8)
def _zone(name: str) -> tzinfo:
    return ZoneInfo(name)


def queue_zone() -> tzinfo:
    """Return the configured branch-local time zone."""
    return _zone(settings.queue_timezone)


def local_date_key(instant: datetime | None = None) -> str:
    """Return the ``YYYY-MM-DD`` day partition for ``instant`` in branch-local time."""
    moment = ensure_aware(instant) if instant is not None else utcnow()
    return moment.astimezone(queue_zone()).strftime("%Y-%m-%d")


def validate_date_key(value: str) -> str:
    """Return ``value`` if it is a real calendar date in ``YYYY-MM-DD`` form."""
    key = (value or "").strip()
    if not DATE_KEY_PATTERN.match(key):
        raise InvalidInputError("date", "Date must be formatted as YYYY-MM-DD.")
    try:
        date.fromisoformat(key)
    except ValueError as err:
        raise InvalidInputError("date", "Date must be a real calendar day.") from err
    return key
