"""
cadence.engine.dates — Local Calendar-Date Arithmetic
======================================================

Every date the engine sees is the *user's* local calendar day, supplied by
the caller.  Nothing here consults the system clock or converts between
timezones: ``"2024-03-10"`` means March 10th wherever the user is.

Differences are computed on :class:`datetime.date` ordinals, so a DST
transition can never turn one calendar day into 23 or 25 hours.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timedelta

__all__ = [
    "DateLike",
    "add_days",
    "days_between",
    "format_date",
    "parse_local_date",
]

DateLike = date | str

# Keys tried, in order, when a history entry arrives as a mapping.
# ``start_date_local`` is what activity providers put on their payloads.
_ENTRY_DATE_KEYS: tuple[str, ...] = ("date", "start_date_local", "scheduled_date")


def parse_local_date(value: DateLike | Mapping) -> date:
    """Coerce *value* into a local calendar date.

    Accepts a :class:`date`, a :class:`datetime` (its wall-clock date is
    kept verbatim, tzinfo is ignored), a ``YYYY-MM-DD`` string, a local
    timestamp string such as ``"2024-04-01T07:30:00Z"`` (only the date
    prefix is read), or a mapping carrying one of those under ``date`` /
    ``start_date_local`` / ``scheduled_date``.

    Raises
    ------
    ValueError
        If no calendar date can be read from *value*.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, Mapping):
        for key in _ENTRY_DATE_KEYS:
            if value.get(key):
                return parse_local_date(value[key])
        raise ValueError(f"History entry has no date field: {value!r}")
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Cannot read a calendar date from {value!r}")


def format_date(day: date) -> str:
    """``date(2024, 3, 1)`` → ``"2024-03-01"``."""
    return day.isoformat()


def days_between(earlier: date, later: date) -> int:
    """Number of calendar days from *earlier* to *later* (negative if reversed)."""
    return later.toordinal() - earlier.toordinal()


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
