"""Date helpers shared by the aggregation services and the API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def resolve_today(today: date | datetime | None = None) -> date:
    """Return ``today`` as a date, defaulting to the current local date."""
    if today is None:
        return date.today()
    if isinstance(today, datetime):
        return today.date()
    return today


def as_date(value: date | datetime | str | None) -> Optional[date]:
    """Coerce stored values (dates, datetimes or ISO strings) to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def parse_iso_date(value: str | None) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored).

    Raises ``ValueError`` for anything that is not an ISO date.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative when end is earlier)."""
    return (end - start).days


def format_iso(value: date | None) -> str | None:
    return value.isoformat() if value else None
