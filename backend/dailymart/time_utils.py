from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def localnow() -> datetime:
    """
    Wall-clock 'now' in the shop's local time (naive).

    Sales are stamped with local time so that daily and monthly reports
    group by the calendar day the cashier saw, not the UTC day.
    """
    return datetime.now().replace(microsecond=0)


def local_today() -> date:
    return localnow().date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a "YYYY-MM-DD" string.

    - None / "" -> None
    - date/datetime instances are passed through (datetime -> its date)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s)


def parse_year_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse "YYYY-MM" into (year, month); None / "" -> None."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    year_s, _, month_s = s.partition("-")
    year, month = int(year_s), int(month_s)
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month in {value!r}")
    return year, month


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_local_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serializes a local-naive datetime without any zone suffix."""
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()
